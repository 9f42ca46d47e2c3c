"""
dbshift - Storage-location manager for SQLite database files.

Relocates named database files between device-local and external storage,
tracks which location is authoritative and verifies file integrity with
stored checksums.
"""

__version__ = "0.1.0"
__author__ = "dbshift developers"
