"""Conversions between registry value strings, raw key bytes and BlueZ text.

The Windows side stores pairing material as ``reg``-style typed strings:

* ``dword:00000000`` for 32-bit values (``EDIV``),
* ``hex:c2,90,...`` for binary values (``LTK``, ``IRK``, ``CSRK``),
* ``hex(b):00,...`` for 64-bit values (``ERand``, ``Address``),

while legacy link keys are stored under a value named after the device MAC
(``c0fbf9601c13``). BlueZ wants uppercase hex for keys, colon separated MACs
for directory names and plain decimal numbers for ``EDiv``/``Rand``.
"""
from __future__ import annotations

import re
import sys

from .common import FieldDecodeError, is_compact_mac

DWORD_PREFIX = "dword:"
HEX_PREFIX = "hex:"
HEX_B_PREFIX = "hex(b):"

KEY_SIZE = 16
ADDRESS_SIZE = 6
QWORD_SIZE = 8
DWORD_SIZE = 4

# Addresses are stored as a little-endian QWORD: six address bytes followed
# by two bytes of zero padding.
ADDRESS_PADDING = QWORD_SIZE - ADDRESS_SIZE

_HEX_BYTE_RE = re.compile(r"[0-9A-Fa-f]{2}")
_DECIMAL_RE = re.compile(r"[0-9]+")


def _payload(value: str, prefix: str) -> str:
    if not isinstance(value, str) or not value.lower().startswith(prefix):
        raise FieldDecodeError(f"Expected a '{prefix}' value, got {value!r}")
    return value[len(prefix) :]


def _parse_byte_list(value: str, prefix: str, width: int) -> bytes:
    payload = _payload(value, prefix)
    items = [item.strip() for item in payload.split(",")]
    if len(items) != width:
        raise FieldDecodeError(
            f"Expected {width} bytes in {value!r}, found {len(items)}"
        )
    for item in items:
        if not _HEX_BYTE_RE.fullmatch(item):
            raise FieldDecodeError(f"Invalid hex byte {item!r} in {value!r}")
    return bytes(int(item, 16) for item in items)


def decode_dword(value: str) -> bytes:
    """Decode ``dword:NNNNNNNN`` into 4 bytes in host byte order.

    The digits are read as a *decimal* number, even though ``reg`` exports
    dwords in hex. Keys written by Windows so far only carry ``EDIV`` values
    made of decimal digits, and the behaviour is kept until a sample with hex
    letters shows otherwise.
    """

    payload = _payload(value, DWORD_PREFIX).strip()
    if not _DECIMAL_RE.fullmatch(payload):
        raise FieldDecodeError(f"Invalid decimal dword {value!r}")

    number = int(payload, 10)
    if number >= 1 << (8 * DWORD_SIZE):
        raise FieldDecodeError(f"Dword {value!r} does not fit in 32 bits")
    return number.to_bytes(DWORD_SIZE, sys.byteorder)


def decode_hex(value: str, width: int = KEY_SIZE) -> bytes:
    """Decode ``hex:b1,b2,...`` into exactly ``width`` bytes."""

    return _parse_byte_list(value, HEX_PREFIX, width)


def decode_hex_b(value: str) -> bytes:
    """Decode ``hex(b):b1,...,b8`` into 8 bytes, in the order given."""

    return _parse_byte_list(value, HEX_B_PREFIX, QWORD_SIZE)


def decode_hex_b_address(value: str) -> bytes:
    """Decode an ``Address`` QWORD into the 6-byte address in transmission order.

    ``hex(b):c1,f4,11,0a,29,c8,00,00`` -> ``c8 29 0a 11 f4 c1``
    """

    raw = decode_hex_b(value)
    return bytes(reversed(raw))[ADDRESS_PADDING:]


def decode_compact_address(value: str) -> bytes:
    """Decode a registry key/value name such as ``c0fbf9601c13``."""

    if not isinstance(value, str) or not is_compact_mac(value):
        raise FieldDecodeError(f"Invalid compact MAC address {value!r}")
    return bytes.fromhex(value)


def encode_key(data: bytes) -> str:
    """Render key material the way BlueZ stores ``Key=``."""

    return data.hex().upper()


def encode_address(data: bytes) -> str:
    """Render an address as ``AA:BB:CC:DD:EE:FF`` (BlueZ directory names)."""

    return ":".join(f"{byte:02X}" for byte in data)


def encode_ediv(data: bytes) -> str:
    """Render the encrypted diversifier as the decimal ``EDiv=`` value."""

    return str(int.from_bytes(data, sys.byteorder))


def encode_rand(data: bytes) -> str:
    """Render ``ERand`` (a little-endian QWORD image) as the decimal ``Rand=`` value."""

    return str(int.from_bytes(data, "little"))


__all__ = [
    "ADDRESS_SIZE",
    "DWORD_PREFIX",
    "DWORD_SIZE",
    "HEX_B_PREFIX",
    "HEX_PREFIX",
    "KEY_SIZE",
    "QWORD_SIZE",
    "decode_compact_address",
    "decode_dword",
    "decode_hex",
    "decode_hex_b",
    "decode_hex_b_address",
    "encode_address",
    "encode_ediv",
    "encode_key",
    "encode_rand",
]
