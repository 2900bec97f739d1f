"""Locate mounted Windows partitions that carry a registry hive."""
from __future__ import annotations

import logging
import os
import re
from typing import Callable, Optional

from .bluetooth.windows_registry import WINDOWS_HIVE_RELATIVE_PATH

logger = logging.getLogger(__name__)

PROC_MOUNTS = "/proc/mounts"

_OCTAL_ESCAPE_RE = re.compile(r"\\([0-7]{3})")


def _unescape_mount_field(value: str) -> str:
    # /proc/mounts writes space, tab, newline and backslash as \040 etc.
    return _OCTAL_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 8)), value)


def hive_path(mount_point: str) -> str:
    return os.path.join(mount_point, WINDOWS_HIVE_RELATIVE_PATH)


def parse_mount_points(mounts_text: str) -> list[str]:
    """Return mount points of real block devices listed in ``/proc/mounts`` text."""

    mount_points: list[str] = []
    for line in mounts_text.splitlines():
        if not line.startswith("/dev/") or line.startswith("/dev/loop"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        mount_points.append(_unescape_mount_field(parts[1]))
    return mount_points


def find_windows_mounts(mounts_file: str = PROC_MOUNTS) -> list[str]:
    """Return mount points that contain ``Windows/System32/config/SYSTEM``."""

    with open(mounts_file, "r", encoding="utf-8", errors="replace") as f:
        mounts_text = f.read()

    found = [mp for mp in parse_mount_points(mounts_text) if os.path.isfile(hive_path(mp))]
    logger.debug("Found %d Windows partition(s): %s", len(found), ", ".join(found))
    return found


def prompt_choice(mounts: list[str], input_func: Callable[[str], str] = input) -> str:
    """Ask on the terminal which partition to use."""

    print("Multiple Windows partitions detected:")
    for index, mount in enumerate(mounts, start=1):
        print(f"  {index}) {mount}")

    while True:
        answer = input_func(f"Which one to use? [1-{len(mounts)}]: ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(mounts):
            return mounts[int(answer) - 1]
        print(f"Please enter a number between 1 and {len(mounts)}.")


def choose_windows_mount(
    mounts: list[str],
    saved: Optional[str] = None,
    input_func: Callable[[str], str] = input,
) -> str:
    """Pick the partition to read: the only one, the saved one, or ask."""

    if not mounts:
        raise FileNotFoundError("No mounted Windows partition with a registry hive was found.")
    if len(mounts) == 1:
        return mounts[0]
    if saved and saved in mounts:
        logger.info("Using saved Windows partition: %s", saved)
        return saved
    return prompt_choice(mounts, input_func)


__all__ = [
    "PROC_MOUNTS",
    "choose_windows_mount",
    "find_windows_mounts",
    "hive_path",
    "parse_mount_points",
    "prompt_choice",
]
