#!/usr/bin/env python3
"""Copy Bluetooth pairing keys from a dual-boot Windows install into BlueZ."""
from __future__ import annotations

import sys

from bt_dualboot.cli import main


if __name__ == "__main__":
    sys.exit(main())
