"""Sync Bluetooth pairing keys from a Windows install into BlueZ."""

__version__ = "0.1.0"
