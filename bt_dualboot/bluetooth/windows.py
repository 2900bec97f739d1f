"""Turn registry ``Keys`` entries into :class:`DeviceRecord` objects.

Windows keeps two layouts side by side under ``...\\BTHPORT\\Parameters\\Keys``:

* ``Keys\\<adapter>`` holds one binary value per classic (BR/EDR) device, the
  value name being the device MAC and the data its link key;
* ``Keys\\<adapter>\\<device>`` is a subkey per LE device with ``LTK``,
  ``Address``, ``EDIV``, ``ERand`` and optionally ``IRK``/``CSRK`` values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from .codec import (
    decode_compact_address,
    decode_dword,
    decode_hex,
    decode_hex_b,
    decode_hex_b_address,
    encode_address,
    encode_key,
)
from .common import DeviceAssemblyError, FieldDecodeError, is_compact_mac
from .records import DeviceRecord
from .windows_registry import RegistryEntries

logger = logging.getLogger(__name__)

WIN_BT_KEYS_REG_PATH = r"SYSTEM\CurrentControlSet\Services\BTHPORT\Parameters\Keys"
KEYS_ROOT_SUFFIX = ("services", "bthport", "parameters", "keys")


class EntryShape(Enum):
    LEGACY = "legacy"
    EXTENDED = "extended"


@dataclass(frozen=True)
class RawDevice:
    """One device's undecoded values, tagged with the layout it came from."""

    shape: EntryShape
    path: str
    adapter: str
    name: str
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def label(self) -> str:
        try:
            return encode_address(decode_compact_address(self.name))
        except FieldDecodeError:
            return self.name


@dataclass
class AssemblyResult:
    records: list[DeviceRecord] = field(default_factory=list)
    failures: list[DeviceAssemblyError] = field(default_factory=list)


def _keys_root_depth(segments: list[str]) -> Optional[int]:
    """Return the number of segments up to and including ``Keys``."""

    lowered = [s.lower() for s in segments]
    size = len(KEYS_ROOT_SUFFIX)
    for end in range(size, len(lowered) + 1):
        if tuple(lowered[end - size : end]) == KEYS_ROOT_SUFFIX:
            return end
    return None


def classify_entries(entries: RegistryEntries) -> list[RawDevice]:
    """Split parsed registry keys into per-device raw value sets."""

    devices: list[RawDevice] = []
    for path, values in entries.items():
        segments = path.split("\\")
        root_depth = _keys_root_depth(segments)
        if root_depth is None:
            logger.debug("Ignoring key outside the Bluetooth Keys branch: %s", path)
            continue

        depth = len(segments)
        if depth == root_depth + 1:
            adapter = segments[-1]
            if not is_compact_mac(adapter):
                logger.debug("Ignoring non-adapter key %s", path)
                continue
            for name, value in values.items():
                if not is_compact_mac(name):
                    continue
                devices.append(
                    RawDevice(
                        shape=EntryShape.LEGACY,
                        path=path,
                        adapter=adapter,
                        name=name,
                        fields={"LTK": value},
                    )
                )
        elif depth > root_depth + 1:
            devices.append(
                RawDevice(
                    shape=EntryShape.EXTENDED,
                    path=path,
                    adapter=segments[-2],
                    name=segments[-1],
                    fields=dict(values),
                )
            )

    return devices


def _decode_optional(fields: Dict[str, str], name: str, decoder) -> Optional[bytes]:
    value = fields.get(name)
    if value is None:
        return None
    return decoder(value)


def assemble_device(raw: RawDevice) -> DeviceRecord:
    """Decode one device's values into a validated record.

    Raises:
        DeviceAssemblyError: if a value is malformed or ``LTK``/``Address`` is
            missing. The error names the device so it can be reported and
            skipped.
    """

    label = raw.label
    try:
        adapter_address = decode_compact_address(raw.adapter)

        if raw.shape is EntryShape.LEGACY:
            device_address = decode_compact_address(raw.name)
        else:
            if "Address" not in raw.fields:
                raise DeviceAssemblyError(label, "no Address value")
            device_address = decode_hex_b_address(raw.fields["Address"])
            label = encode_address(device_address)

        if "LTK" not in raw.fields:
            raise DeviceAssemblyError(label, "no LTK value")

        record = DeviceRecord(
            device_address=device_address,
            adapter_address=adapter_address,
            long_term_key=decode_hex(raw.fields["LTK"]),
            encrypted_diversifier=_decode_optional(raw.fields, "EDIV", decode_dword),
            encrypted_rand=_decode_optional(raw.fields, "ERand", decode_hex_b),
            identity_resolving_key=_decode_optional(raw.fields, "IRK", decode_hex),
            connection_signature_resolving_key=_decode_optional(
                raw.fields, "CSRK", decode_hex
            ),
        )
    except DeviceAssemblyError:
        raise
    except ValueError as exc:
        raise DeviceAssemblyError(label, str(exc)) from exc

    logger.debug(
        "%s device %s (adapter %s): ltk=%s",
        raw.shape.value,
        record.device_mac,
        record.adapter_mac,
        encode_key(record.long_term_key),
    )
    return record


def assemble_devices(entries: RegistryEntries) -> AssemblyResult:
    """Build a record for every device found; bad devices are reported, not fatal."""

    result = AssemblyResult()
    for raw in classify_entries(entries):
        try:
            result.records.append(assemble_device(raw))
        except DeviceAssemblyError as exc:
            logger.warning("Skipping device %s: %s", exc.device, exc.reason)
            result.failures.append(exc)

    logger.debug(
        "Found %d device(s), %d skipped", len(result.records), len(result.failures)
    )
    return result


__all__ = [
    "AssemblyResult",
    "EntryShape",
    "KEYS_ROOT_SUFFIX",
    "RawDevice",
    "WIN_BT_KEYS_REG_PATH",
    "assemble_device",
    "assemble_devices",
    "classify_entries",
]
