"""Test configuration and fixtures."""

import pytest
import tempfile
import shutil
from pathlib import Path

from dbshift.storage.locations import StorageLocations
from dbshift.storage.manager import StorageManager
from dbshift.storage.settings import SettingsStore


@pytest.fixture
def temp_root():
    """Create a temporary root directory."""
    temp_dir = Path(tempfile.mkdtemp())

    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def locations(temp_root):
    """Device and external directories, both present."""
    device_dir = temp_root / "device"
    external_dir = temp_root / "external"
    device_dir.mkdir()
    external_dir.mkdir()
    return StorageLocations(device_dir=device_dir, external_dir=external_dir)


@pytest.fixture
def settings(temp_root):
    """Settings store in the temporary root."""
    return SettingsStore(temp_root / "preferences.db")


@pytest.fixture
def manager(locations, settings):
    """Storage manager over the temporary locations."""
    with StorageManager(locations, settings) as storage_manager:
        yield storage_manager


@pytest.fixture
def comics_files(locations):
    """A database and its checksum sidecar in device storage."""
    db_file = locations.device_dir / "comics.s3db"
    csm_file = locations.device_dir / "comics.csm"
    db_file.write_bytes(b"SQLite format 3\x00" + bytes(range(256)) * 8)
    csm_file.write_text("0123456789abcdef0123456789abcdef")
    return db_file, csm_file
