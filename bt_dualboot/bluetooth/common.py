from __future__ import annotations

import re
import subprocess
from typing import Tuple


BASE_DIR = "/var/lib/bluetooth"

_COMPACT_MAC_RE = re.compile(r"[0-9A-Fa-f]{12}")


class FieldDecodeError(ValueError):
    """A registry value could not be decoded into its fixed-width bytes."""


class RegistryFormatError(ValueError):
    """The registry export text does not follow the ``[path]`` / ``name=value`` grammar."""


class DeviceAssemblyError(ValueError):
    """A device found in the registry could not be turned into a record.

    ``device`` is the best label available for the device (its address when it
    could be decoded, otherwise the registry name it was found under).
    """

    def __init__(self, device: str, message: str):
        super().__init__(f"{device}: {message}")
        self.device = device
        self.reason = message


def normalize_mac(mac: str, separator: str = ":") -> str:
    """Normalize a MAC string to uppercase hex pairs joined by ``separator``.

    Raises:
        ValueError: If the input cannot be parsed as a 12-hex-digit MAC.
    """

    cleaned = mac.replace(":", "").replace("-", "").strip()
    if not is_compact_mac(cleaned):
        raise ValueError(f"Invalid MAC address: {mac}")

    parts = [cleaned[i : i + 2] for i in range(0, 12, 2)]
    return separator.join(p.upper() for p in parts)


def is_compact_mac(name: str) -> bool:
    """True if ``name`` is a registry-style MAC (``c0fbf9601c13``)."""

    return _COMPACT_MAC_RE.fullmatch(name) is not None


def reload_bluetooth() -> Tuple[bool, str]:
    """Restart the BlueZ service so it re-reads the pairing records."""

    commands = [
        (["systemctl", "restart", "bluetooth"], "systemctl restart bluetooth"),
        (["service", "bluetooth", "restart"], "service bluetooth restart"),
    ]

    errors: list[str] = []

    for cmd, label in commands:
        try:
            subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
            return True, label
        except FileNotFoundError:
            errors.append(f"{label}: command not found")
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            errors.append(f"{label}: {stderr or e}")

    return False, "; ".join(errors)


__all__ = [
    "BASE_DIR",
    "DeviceAssemblyError",
    "FieldDecodeError",
    "RegistryFormatError",
    "is_compact_mac",
    "normalize_mac",
    "reload_bluetooth",
]
