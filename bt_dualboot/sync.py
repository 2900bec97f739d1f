"""Apply Windows pairing keys to the matching BlueZ pairing records."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .bluetooth.common import BASE_DIR
from .bluetooth.linux import info_path_for, merge_info, read_info, write_info
from .bluetooth.records import DeviceRecord

logger = logging.getLogger(__name__)


class Outcome(Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    NOT_PAIRED = "not paired in Linux"
    FAILED = "failed"


@dataclass
class DeviceOutcome:
    record: DeviceRecord
    outcome: Outcome
    info_path: str
    backup_path: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SyncSummary:
    results: list[DeviceOutcome] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def succeeded(self) -> bool:
        """True when at least one device now carries the Windows keys."""

        return any(
            r.outcome in (Outcome.UPDATED, Outcome.UNCHANGED) for r in self.results
        )


def sync_device(
    record: DeviceRecord,
    *,
    base_dir: str = BASE_DIR,
    dry_run: bool = False,
    backup: bool = True,
) -> DeviceOutcome:
    """Merge one record into its ``info`` file, reporting instead of raising."""

    info_path = info_path_for(record, base_dir=base_dir)
    if not os.path.isfile(info_path):
        logger.warning(
            "Device %s from Windows is not paired in Linux (no %s)",
            record.device_mac,
            info_path,
        )
        return DeviceOutcome(record, Outcome.NOT_PAIRED, info_path)

    try:
        current = read_info(info_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s for device %s: %s", info_path, record.device_mac, exc)
        return DeviceOutcome(record, Outcome.FAILED, info_path, error=str(exc))

    merged = merge_info(current, record)
    if merged == current:
        logger.info("Device %s is already in sync", record.device_mac)
        return DeviceOutcome(record, Outcome.UNCHANGED, info_path)

    if dry_run:
        logger.info("Would update device %s (%s)", record.device_mac, info_path)
        return DeviceOutcome(record, Outcome.UPDATED, info_path)

    try:
        backup_path = write_info(info_path, merged, backup=backup)
    except RuntimeError as exc:
        logger.warning("Failed to update device %s: %s", record.device_mac, exc)
        return DeviceOutcome(record, Outcome.FAILED, info_path, error=str(exc))

    logger.info("Updated device %s (%s)", record.device_mac, info_path)
    return DeviceOutcome(record, Outcome.UPDATED, info_path, backup_path=backup_path)


def sync_devices(
    records: Iterable[DeviceRecord],
    *,
    base_dir: str = BASE_DIR,
    dry_run: bool = False,
    backup: bool = True,
) -> SyncSummary:
    """Sync every record in order; a device seen twice is written twice."""

    summary = SyncSummary()
    for record in records:
        summary.results.append(
            sync_device(record, base_dir=base_dir, dry_run=dry_run, backup=backup)
        )
    return summary


__all__ = ["DeviceOutcome", "Outcome", "SyncSummary", "sync_device", "sync_devices"]
