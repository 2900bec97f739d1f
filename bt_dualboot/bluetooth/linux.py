from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

from .codec import encode_address, encode_ediv, encode_key, encode_rand
from .common import BASE_DIR
from .records import DeviceRecord

logger = logging.getLogger(__name__)

INFO_FILENAME = "info"

_SECTION_RE = re.compile(r"^\s*\[(?P<name>[^\]]*)\]\s*$")
_FIELD_RE = re.compile(r"^(?P<prefix>\s*(?P<key>[^=\s][^=]*?)\s*=\s*)(?P<value>.*?)\s*$")


@dataclass
class InfoRecord:
    """A BlueZ ``info`` file kept as its original lines.

    ``fields`` maps ``(section, key)`` to the index of the line holding it so a
    value can be swapped without touching anything else in the file.
    """

    lines: list[str]
    fields: Dict[Tuple[str, str], int] = field(default_factory=dict)
    sections: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "InfoRecord":
        record = cls(lines=text.splitlines(keepends=True))
        section: Optional[str] = None
        for index, line in enumerate(record.lines):
            body = line.rstrip("\r\n")
            match = _SECTION_RE.match(body)
            if match:
                section = match.group("name").strip()
                record.sections.append(section)
                continue
            if section is None or body.lstrip().startswith(("#", ";")):
                continue
            match = _FIELD_RE.match(body)
            if match:
                record.fields.setdefault((section, match.group("key")), index)
        return record

    def has_section(self, section: str) -> bool:
        return section in self.sections

    def get(self, section: str, key: str) -> Optional[str]:
        index = self.fields.get((section, key))
        if index is None:
            return None
        return _FIELD_RE.match(self.lines[index].rstrip("\r\n")).group("value")

    def set(self, section: str, key: str, value: str) -> bool:
        """Replace an existing value in place; absent fields are left absent."""

        index = self.fields.get((section, key))
        if index is None:
            return False
        line = self.lines[index]
        body = line.rstrip("\r\n")
        ending = line[len(body) :]
        prefix = _FIELD_RE.match(body).group("prefix")
        self.lines[index] = f"{prefix}{value}{ending}"
        return True

    def to_text(self) -> str:
        return "".join(self.lines)


# Sections whose Key is the long-term key, with Type/PINLength or
# Authenticated/EncSize/EDiv/Rand left as they are.
_LTK_SECTIONS = ("LinkKey", "SlaveLongTermKey", "PeripheralLongTermKey")


def merge_info(text: str, record: DeviceRecord) -> str:
    """Return ``text`` with the key material of ``record`` written into it.

    Only ``Key`` (and ``EDiv``/``Rand`` of ``[LongTermKey]``) values of sections
    already present are rewritten; every other line is returned unchanged.
    """

    info = InfoRecord.parse(text)
    ltk = encode_key(record.long_term_key)

    for section in _LTK_SECTIONS:
        if info.has_section(section):
            info.set(section, "Key", ltk)

    if record.identity_resolving_key is not None and info.has_section("IdentityResolvingKey"):
        info.set("IdentityResolvingKey", "Key", encode_key(record.identity_resolving_key))

    if (
        record.connection_signature_resolving_key is not None
        and info.has_section("LocalSignatureKey")
    ):
        info.set(
            "LocalSignatureKey",
            "Key",
            encode_key(record.connection_signature_resolving_key),
        )

    if (
        record.encrypted_diversifier is not None
        and record.encrypted_rand is not None
        and info.has_section("LongTermKey")
    ):
        info.set("LongTermKey", "Key", ltk)
        info.set("LongTermKey", "EDiv", encode_ediv(record.encrypted_diversifier))
        info.set("LongTermKey", "Rand", encode_rand(record.encrypted_rand))

    return info.to_text()


def info_path_for(record: DeviceRecord, *, base_dir: str = BASE_DIR) -> str:
    return os.path.join(
        base_dir,
        encode_address(record.adapter_address),
        encode_address(record.device_address),
        INFO_FILENAME,
    )


def read_info(info_path: str) -> str:
    with open(info_path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _new_backup_path(info_path: str) -> str:
    directory = os.path.dirname(info_path)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    candidate = os.path.join(directory, f"{INFO_FILENAME}.{timestamp}.bak")
    counter = 1
    while os.path.exists(candidate):
        candidate = os.path.join(directory, f"{INFO_FILENAME}.{timestamp}-{counter}.bak")
        counter += 1
    return candidate


def write_info(info_path: str, text: str, *, backup: bool = True) -> Optional[str]:
    """Overwrite ``info_path`` with ``text``.

    With ``backup`` the current file is first copied to ``info.<timestamp>.bak``
    next to it, and restored from there if the write fails. Returns the backup
    path, if one was made.
    """

    backup_path: Optional[str] = None
    if backup:
        backup_path = _new_backup_path(info_path)
        try:
            shutil.copy2(info_path, backup_path)
        except OSError as e:
            raise RuntimeError(
                f"Failed to create backup of {info_path} before writing: {e}"
            ) from e

    try:
        with open(info_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as write_err:
        if backup_path is None:
            raise RuntimeError(
                f"Failed to update BlueZ info file {info_path}: {write_err}"
            ) from write_err

        try:
            shutil.copy2(backup_path, info_path)
        except OSError as restore_err:
            raise RuntimeError(
                "Failed to update BlueZ info file and failed to restore from backup. "
                f"Update error: {write_err}; restore error: {restore_err}"
            ) from write_err

        raise RuntimeError(
            "Failed to update BlueZ info file. The original file was restored from "
            f"backup. Update error: {write_err}"
        ) from write_err

    return backup_path


__all__ = [
    "INFO_FILENAME",
    "InfoRecord",
    "info_path_for",
    "merge_info",
    "read_info",
    "write_info",
]
