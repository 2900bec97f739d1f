from __future__ import annotations

from .common import (
    BASE_DIR,
    DeviceAssemblyError,
    FieldDecodeError,
    RegistryFormatError,
    normalize_mac,
    reload_bluetooth,
)
from .linux import InfoRecord, info_path_for, merge_info, read_info, write_info
from .records import DeviceRecord, records_from_json_file, records_to_json_file
from .windows import (
    WIN_BT_KEYS_REG_PATH,
    AssemblyResult,
    EntryShape,
    RawDevice,
    assemble_device,
    assemble_devices,
    classify_entries,
)
from .windows_registry import (
    clean_reged_output,
    export_keys_branch,
    parse_registry_export,
    read_reg_file,
)


def load_devices_from_export(text: str) -> AssemblyResult:
    """Parse cleaned export text and build a record per device."""

    return assemble_devices(parse_registry_export(text))


__all__ = [
    "BASE_DIR",
    "AssemblyResult",
    "DeviceAssemblyError",
    "DeviceRecord",
    "EntryShape",
    "FieldDecodeError",
    "InfoRecord",
    "RawDevice",
    "RegistryFormatError",
    "WIN_BT_KEYS_REG_PATH",
    "assemble_device",
    "assemble_devices",
    "classify_entries",
    "clean_reged_output",
    "export_keys_branch",
    "info_path_for",
    "load_devices_from_export",
    "merge_info",
    "normalize_mac",
    "parse_registry_export",
    "read_info",
    "read_reg_file",
    "records_from_json_file",
    "records_to_json_file",
    "reload_bluetooth",
    "write_info",
]
