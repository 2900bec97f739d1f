"""Read the Bluetooth ``Keys`` branch out of an offline Windows registry hive.

The hive is exported with ``reged`` (from the chntpw package) which prints a
``.reg`` style document::

    Windows Registry Editor Version 5.00

    [HKEY_LOCAL_MACHINE\\SYSTEM\\ControlSet001\\Services\\BTHPORT\\Parameters\\Keys\\c0fbf9601c13]
    "001a7dda710b"=hex:78,6d,c4,...

    [HKEY_LOCAL_MACHINE\\SYSTEM\\ControlSet001\\Services\\BTHPORT\\Parameters\\Keys\\c0fbf9601c13\\f4c1a2b3c4d5]
    "LTK"=hex:c2,90,19,...
    "EDIV"=dword:00000000

    reged version ...
"""
from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import Dict

from .common import RegistryFormatError

logger = logging.getLogger(__name__)

WINDOWS_HIVE_RELATIVE_PATH = os.path.join("Windows", "System32", "config", "SYSTEM")
REGED_PREFIX = r"HKEY_LOCAL_MACHINE\SYSTEM"
REGED_KEYS_PATH = r"ControlSet001\Services\BTHPORT\Parameters\Keys"
REGED_TRAILER = "reged version"

RegistryEntries = Dict[str, Dict[str, str]]

# Only binary lists are wrapped by reg export; a string value may end in a backslash.
_WRAPPED_HEX_RE = re.compile(r"=\s*hex(\([0-9A-Fa-f]+\))?:[0-9A-Fa-f,\s]*\\$")


def clean_reged_output(output: str) -> str:
    """Strip the header line and the ``reged version`` trailer from an export."""

    lines = output.splitlines()[1:]
    kept: list[str] = []
    for line in lines:
        if line.startswith(REGED_TRAILER):
            break
        kept.append(line)
    return "\n".join(kept)


def export_keys_branch(hive_path: str) -> str:
    """Run ``reged`` against ``hive_path`` and return the cleaned export text."""

    if not os.path.isfile(hive_path):
        raise FileNotFoundError(f"Windows registry hive not found at {hive_path}")

    command = [
        "reged",
        "-E",
        "-x",
        hive_path,
        REGED_PREFIX,
        REGED_KEYS_PATH,
        "/dev/stdout",
    ]
    logger.debug("Running %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as exc:
        raise RuntimeError(
            "The 'reged' tool was not found. Install the chntpw package."
        ) from exc

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise RuntimeError(
            f"Failed to export {REGED_KEYS_PATH} from {hive_path}: "
            f"{stderr or result.returncode}"
        )
    return clean_reged_output(result.stdout)


def read_reg_file(path: str) -> str:
    """Read a ``reg export`` file (UTF-16 with BOM or UTF-8) and clean it."""

    with open(path, "rb") as f:
        raw = f.read()

    if raw.startswith((b"\xff\xfe", b"\xfe\xff")):
        text = raw.decode("utf-16")
    else:
        text = raw.decode("utf-8-sig", errors="replace")
    return clean_reged_output(text)


def _unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def _split_value_line(line: str, line_no: int) -> tuple[str, str]:
    if line.startswith('"'):
        end = line.find('"', 1)
        if end == -1 or "=" not in line[end + 1 :]:
            raise RegistryFormatError(f"Line {line_no}: malformed value line {line!r}")
        name = line[1:end]
        rest = line[end + 1 :].lstrip()
        if not rest.startswith("="):
            raise RegistryFormatError(f"Line {line_no}: malformed value line {line!r}")
        return name, _unquote(rest[1:])

    name, sep, value = line.partition("=")
    if not sep or not name.strip():
        raise RegistryFormatError(f"Line {line_no}: expected name=value, got {line!r}")
    return name.strip(), _unquote(value)


def _logical_lines(text: str):
    """Yield ``(line_no, line)`` with ``\\``-continued value lines joined."""

    pending = ""
    start = 0
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if pending:
            line = pending + line
        else:
            start = line_no
        if line.endswith("\\") and (pending or _WRAPPED_HEX_RE.search(line)):
            pending = line[:-1]
            continue
        pending = ""
        yield start, line
    if pending:
        yield start, pending


def parse_registry_export(text: str) -> RegistryEntries:
    """Parse cleaned export text into ``{path: {value name: raw value}}``.

    Raises:
        RegistryFormatError: if a line matches neither a ``[path]`` header nor a
            ``name=value`` pair, if a value appears before any header, or if the
            text holds no section at all.
    """

    entries: RegistryEntries = {}
    current: Dict[str, str] | None = None

    for line_no, line in _logical_lines(text):
        if not line or line.startswith(";"):
            continue

        if line.startswith("["):
            if not line.endswith("]"):
                raise RegistryFormatError(f"Line {line_no}: unterminated key path {line!r}")
            path = _unquote(line[1:-1])
            if not path:
                raise RegistryFormatError(f"Line {line_no}: empty key path")
            current = entries.setdefault(path, {})
            continue

        if current is None:
            raise RegistryFormatError(
                f"Line {line_no}: value {line!r} appears before any key path"
            )
        name, value = _split_value_line(line, line_no)
        current[name] = value

    if not entries:
        raise RegistryFormatError("Registry export contains no keys")

    logger.debug("Parsed %d registry key(s)", len(entries))
    return entries


__all__ = [
    "REGED_KEYS_PATH",
    "REGED_PREFIX",
    "RegistryEntries",
    "WINDOWS_HIVE_RELATIVE_PATH",
    "clean_reged_output",
    "export_keys_branch",
    "parse_registry_export",
    "read_reg_file",
]
