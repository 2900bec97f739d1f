"""Platform-neutral pairing record shared by the Windows and Linux sides."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Optional

from .codec import (
    ADDRESS_SIZE,
    DWORD_SIZE,
    KEY_SIZE,
    QWORD_SIZE,
    encode_address,
    encode_key,
)

_FIELD_SIZES = {
    "device_address": ADDRESS_SIZE,
    "adapter_address": ADDRESS_SIZE,
    "long_term_key": KEY_SIZE,
    "encrypted_diversifier": DWORD_SIZE,
    "encrypted_rand": QWORD_SIZE,
    "identity_resolving_key": KEY_SIZE,
    "connection_signature_resolving_key": KEY_SIZE,
}

_REQUIRED_FIELDS = ("device_address", "adapter_address", "long_term_key")
_ADDRESS_FIELDS = ("device_address", "adapter_address")


@dataclass(frozen=True)
class DeviceRecord:
    """Keys for one device paired with one adapter.

    All values are raw bytes of a fixed width. Construction fails with
    ``ValueError`` if a required value is missing or any value has the wrong
    width, so a record that exists is always complete.
    """

    device_address: bytes
    adapter_address: bytes
    long_term_key: bytes
    encrypted_diversifier: Optional[bytes] = None
    encrypted_rand: Optional[bytes] = None
    identity_resolving_key: Optional[bytes] = None
    connection_signature_resolving_key: Optional[bytes] = None

    def __post_init__(self):
        for name, size in _FIELD_SIZES.items():
            value = getattr(self, name)
            if value is None:
                if name in _REQUIRED_FIELDS:
                    raise ValueError(f"Field '{name}' is required.")
                continue
            if not isinstance(value, (bytes, bytearray)):
                raise ValueError(f"Field '{name}' must be bytes, got {type(value).__name__}.")
            if len(value) != size:
                raise ValueError(
                    f"Field '{name}' must be {size} bytes (got {len(value)})."
                )
            if isinstance(value, bytearray):
                object.__setattr__(self, name, bytes(value))

    @property
    def device_mac(self) -> str:
        return encode_address(self.device_address)

    @property
    def adapter_mac(self) -> str:
        return encode_address(self.adapter_address)

    def to_dict(self) -> Dict[str, Optional[str]]:
        data: Dict[str, Optional[str]] = {}
        for name in _FIELD_SIZES:
            value = getattr(self, name)
            if value is None:
                data[name] = None
            elif name in _ADDRESS_FIELDS:
                data[name] = encode_address(value)
            else:
                data[name] = encode_key(value)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DeviceRecord":
        if not isinstance(data, dict):
            raise ValueError("JSON must be an object with device_address, adapter_address and long_term_key.")

        missing = [f for f in _REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise ValueError(f"Missing required field(s): {', '.join(missing)}")

        values: Dict[str, Optional[bytes]] = {}
        for name in _FIELD_SIZES:
            text = data.get(name)
            if text is None:
                values[name] = None
                continue
            if not isinstance(text, str):
                raise ValueError(f"Field '{name}' must be a hex string.")
            cleaned = text.replace(":", "").strip()
            try:
                values[name] = bytes.fromhex(cleaned)
            except ValueError as exc:
                raise ValueError(f"Field '{name}' is not valid hexadecimal.") from exc

        return cls(**values)


def records_to_json_file(records: list[DeviceRecord], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump([record.to_dict() for record in records], f, indent=2)


def records_from_json_file(path: str) -> list[DeviceRecord]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("JSON must be a list of device records.")
    return [DeviceRecord.from_dict(item) for item in data]


__all__ = ["DeviceRecord", "records_from_json_file", "records_to_json_file"]
