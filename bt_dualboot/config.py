"""Saved defaults for the sync tool."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".bt_dualboot_sync.json"


def load_config(path: Path = CONFIG_PATH) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(windows_mount: Optional[str], path: Path = CONFIG_PATH) -> bool:
    # Keep keys written by other versions of the tool
    cfg = load_config(path)
    cfg["windows_mount"] = str(windows_mount) if windows_mount else cfg.get("windows_mount", "")
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=2)
        return True
    except OSError as e:
        logger.warning("Failed to save config: %s", e)
        return False


def saved_windows_mount(path: Path = CONFIG_PATH) -> Optional[str]:
    value = load_config(path).get("windows_mount")
    return value if isinstance(value, str) and value else None


__all__ = ["CONFIG_PATH", "load_config", "save_config", "saved_windows_mount"]
