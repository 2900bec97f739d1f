"""
Command-line tool to copy Bluetooth pairing keys from Windows into BlueZ.

Pair a device in Windows, boot Linux with the Windows partition mounted and
run ``bt-dualboot-sync sync``. The keys are read from the offline registry
hive with ``reged`` (chntpw) and written into the matching
``/var/lib/bluetooth/<adapter>/<device>/info`` files. The device must have been
paired once in Linux so that its ``info`` file exists.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .bluetooth import (
    BASE_DIR,
    WIN_BT_KEYS_REG_PATH,
    DeviceRecord,
    RegistryFormatError,
    export_keys_branch,
    info_path_for,
    load_devices_from_export,
    normalize_mac,
    read_reg_file,
    records_from_json_file,
    records_to_json_file,
    reload_bluetooth,
)
from .config import save_config, saved_windows_mount
from .mounts import choose_windows_mount, find_windows_mounts, hive_path
from .permissions import ensure_root_linux
from .sync import Outcome, sync_devices

logger = logging.getLogger("bt_dualboot")

EXIT_OK = 0
EXIT_NOTHING_DONE = 1
EXIT_FATAL = 2


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _resolve_mount(args: argparse.Namespace) -> str:
    if args.mount:
        return args.mount

    saved = saved_windows_mount()
    mounts = find_windows_mounts()
    mount = choose_windows_mount(mounts, saved=saved)
    if len(mounts) > 1 and mount != saved:
        save_config(mount)
    return mount


def load_records(args: argparse.Namespace) -> List[DeviceRecord]:
    """Read records from the selected source, dropping devices that failed to decode."""

    if getattr(args, "json", None):
        records = records_from_json_file(args.json)
    else:
        if args.reg_file:
            text = read_reg_file(args.reg_file)
        else:
            mount = _resolve_mount(args)
            logger.info("Reading Windows registry from %s", mount)
            text = export_keys_branch(hive_path(mount))
        records = load_devices_from_export(text).records

    if args.device:
        wanted = normalize_mac(args.device)
        records = [r for r in records if r.device_mac == wanted]

    logger.debug("%d device record(s) selected", len(records))
    return records


def _key_names(record: DeviceRecord) -> str:
    names = ["LTK"]
    if record.identity_resolving_key is not None:
        names.append("IRK")
    if record.connection_signature_resolving_key is not None:
        names.append("CSRK")
    if record.encrypted_diversifier is not None:
        names.append("EDIV")
    if record.encrypted_rand is not None:
        names.append("ERand")
    return ",".join(names)


def cmd_list(args: argparse.Namespace) -> int:
    records = load_records(args)
    if not records:
        print("No paired devices found in the Windows registry.")
        return EXIT_NOTHING_DONE

    for record in records:
        in_linux = os.path.isfile(info_path_for(record, base_dir=args.bluez_dir))
        print(
            f"Device: {record.device_mac}\tAdapter: {record.adapter_mac}\t"
            f"Keys: {_key_names(record)}\tPaired in Linux: {'yes' if in_linux else 'no'}"
        )
    return EXIT_OK


def cmd_export(args: argparse.Namespace) -> int:
    records = load_records(args)
    if not records:
        print("No paired devices found in the Windows registry.")
        return EXIT_NOTHING_DONE

    records_to_json_file(records, args.output)
    print(f"Exported {len(records)} device record(s) to {args.output}")
    return EXIT_OK


def cmd_sync(args: argparse.Namespace) -> int:
    if not args.dry_run:
        ensure_root_linux()

    records = load_records(args)
    if not records:
        logger.warning("No paired devices found in the Windows registry.")
        return EXIT_NOTHING_DONE

    summary = sync_devices(
        records,
        base_dir=args.bluez_dir,
        dry_run=args.dry_run,
        backup=not args.no_backup,
    )

    for result in summary.results:
        if result.backup_path:
            logger.debug("Backup of %s saved to %s", result.info_path, result.backup_path)

    print(
        f"{summary.count(Outcome.UPDATED)} updated, "
        f"{summary.count(Outcome.UNCHANGED)} already in sync, "
        f"{summary.count(Outcome.NOT_PAIRED)} not paired in Linux, "
        f"{summary.count(Outcome.FAILED)} failed"
    )

    if args.restart and not args.dry_run and summary.count(Outcome.UPDATED):
        ok, detail = reload_bluetooth()
        if ok:
            logger.info("Restarted Bluetooth service (%s)", detail)
        else:
            logger.warning("Could not restart Bluetooth service: %s", detail)

    return EXIT_OK if summary.succeeded else EXIT_NOTHING_DONE


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    common.add_argument("-q", "--quiet", action="store_true", help="Only show warnings and errors")
    source = common.add_mutually_exclusive_group()
    source.add_argument(
        "--mount",
        help="Mount point of the Windows partition (default: detect from /proc/mounts)",
    )
    source.add_argument(
        "--reg-file",
        dest="reg_file",
        help=f"Use a .reg file exported from HKLM\\{WIN_BT_KEYS_REG_PATH} instead of the hive",
    )
    common.add_argument("--device", help="Only handle this device MAC (AA:BB:CC:DD:EE:FF)")
    common.add_argument(
        "--bluez-dir",
        dest="bluez_dir",
        default=BASE_DIR,
        help=f"BlueZ storage directory (default: {BASE_DIR})",
    )

    parser = argparse.ArgumentParser(
        description="Copy Bluetooth pairing keys from a Windows install into BlueZ."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    parser_list = sub.add_parser(
        "list", parents=[common], help="List devices paired in Windows"
    )
    parser_list.set_defaults(func=cmd_list)

    parser_export = sub.add_parser(
        "export", parents=[common], help="Export the decoded Windows keys to JSON"
    )
    parser_export.add_argument(
        "-o", "--output", default="bt_keys.json", help="Output JSON file (default: bt_keys.json)"
    )
    parser_export.set_defaults(func=cmd_export)

    parser_sync = sub.add_parser(
        "sync", parents=[common], help="Write the Windows keys into the BlueZ info files"
    )
    parser_sync.add_argument(
        "--json", help="Read device records from a JSON file written by 'export'"
    )
    parser_sync.add_argument(
        "--dry-run", dest="dry_run", action="store_true", help="Report changes without writing"
    )
    parser_sync.add_argument(
        "--no-backup",
        dest="no_backup",
        action="store_true",
        help="Do not keep an info.<timestamp>.bak copy of each changed file",
    )
    parser_sync.add_argument(
        "--restart",
        action="store_true",
        help="Restart the bluetooth service after updating",
    )
    parser_sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        return args.func(args)
    except (FileNotFoundError, RuntimeError, RegistryFormatError) as exc:
        logger.error("%s", exc)
        return EXIT_FATAL
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
