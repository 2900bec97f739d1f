"""Root check for reading the hive and writing ``/var/lib/bluetooth``."""
from __future__ import annotations

import os
import platform
import shutil
import sys

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PACKAGE_NAME = __name__.rpartition(".")[0]


def is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def relaunch_command() -> list[str]:
    """Command line that re-runs this process.

    A module started with ``python -m`` has its file as ``argv[0]``; it is
    re-run with ``-m`` so its package imports still resolve.
    """

    script_path = os.path.abspath(sys.argv[0])
    if script_path.endswith(".py") and script_path.startswith(_PACKAGE_DIR + os.sep):
        relative = os.path.relpath(script_path, _PACKAGE_DIR)[: -len(".py")]
        module = ".".join([_PACKAGE_NAME, *relative.split(os.sep)])
        return [sys.executable, "-m", module, *sys.argv[1:]]
    return [sys.executable, script_path, *sys.argv[1:]]


def ensure_root_linux() -> None:
    """Re-run the current command through ``sudo`` or ``pkexec`` unless already root.

    Returns immediately on non-Linux hosts and when the effective UID is 0.
    """

    if platform.system() != "Linux" or is_root():
        return

    args = relaunch_command()

    if shutil.which("sudo"):
        os.execvpe("sudo", ["sudo", "-E", *args], os.environ)

    if shutil.which("pkexec"):
        os.execvpe("pkexec", ["pkexec", *args], os.environ)

    sys.stderr.write("This tool must be run as root (sudo/pkexec not found).\n")
    sys.exit(1)


__all__ = ["ensure_root_linux", "is_root", "relaunch_command"]
