"""Storage mode controller for a set of named database files."""

import sqlite3
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..core.config import ConfigManager
from ..core.interfaces import IPathResolver, IUpdateCompleteListener, IUpdateManager
from ..core.models import (
    Checksum, DatabaseName, IntegrityResult, StorageMode, StorageState,
    TransferRecord, UpdateState, DATABASE_EXTENSION, CHECKSUM_EXTENSION
)
from ..hooks.notifier import ChangeNotifier, ListenerLike
from ..hooks.base import ChangeListener
from .checksum import ChecksumEngine, STORED
from .database import SQLiteEngine
from .locations import StorageLocations
from .settings import SettingsStore
from .transfer import FileTransfer
from .updates import UpdateOrchestrator


logger = logging.getLogger(__name__)

KEY_STORAGE_MODE_CURRENT = "storage_mode_current"
KEY_STORAGE_MODE_PREVIOUS = "storage_mode_previous"
KEY_TRANSFER_SUCCESS = "transfer_success"


class StorageManager(IPathResolver):
    """Manages where database files live and moves them when that changes.

    The current mode, the previous mode and whether the last transfer
    succeeded are persisted in the settings store. Changing the mode is
    recorded even when the files fail to move; the failure is re-raised
    and :meth:`retry_pending_transfer` can finish the move later.
    """

    def __init__(self, locations: StorageLocations, settings: SettingsStore,
                 extensions: Optional[Iterable[str]] = None,
                 block_size: int = 1024,
                 engine: Optional[SQLiteEngine] = None):
        """Initialize storage manager.

        If nothing has been persisted yet the storage mode defaults to
        DEVICE.

        Args:
            locations: Directories for each storage mode
            settings: Persistent store for the mode and transfer record
            extensions: File suffixes moved on a mode change
            block_size: Read size used while computing checksums
            engine: Database engine used to read version headers
        """
        self.locations = locations
        self.settings = settings
        self.engine = engine or SQLiteEngine()
        self.notifier = ChangeNotifier()
        self.file_transfer = FileTransfer(locations, extensions)
        self.checksums = ChecksumEngine(self, block_size)
        self.updates = UpdateOrchestrator(self, self.engine, on_change=self.notify_change)

        self._connection: Optional[sqlite3.Connection] = None
        self._connection_lock = threading.Lock()
        self._storage_mode = StorageMode.DEVICE
        self._external_state = StorageState.UNAVAILABLE

        self.locations.device_dir.mkdir(parents=True, exist_ok=True)

        self.refresh_external_availability()
        self.reload_storage_mode()

        logger.debug(f"StorageManager initialized in {self._storage_mode.name} mode")

    @classmethod
    def from_config(cls, config: Dict[str, Any],
                    project_root: Optional[Path] = None) -> 'StorageManager':
        """Build a manager from a loaded configuration dictionary."""
        config_manager = ConfigManager(project_root)
        storage = config['storage']
        settings = SettingsStore(
            config_manager.resolve_path(storage['settings_file']),
            storage.get('settings_namespace', 'dbmanager')
        )
        return cls(
            StorageLocations.from_config(config, project_root),
            settings,
            extensions=config.get('transfer', {}).get('extensions'),
            block_size=config.get('checksum', {}).get('block_size', 1024)
        )

    # Storage mode

    def get_storage_mode(self) -> StorageMode:
        """Get the storage mode held by this instance."""
        return self._storage_mode

    def reload_storage_mode(self) -> StorageMode:
        """Re-read the persisted storage mode.

        Needed when several managers share one settings file, so that each
        looks in the right directory.
        """
        with self.settings.lock:
            self._storage_mode = StorageMode(
                self.settings.get_int(KEY_STORAGE_MODE_CURRENT, StorageMode.DEVICE)
            )
        return self._storage_mode

    def get_previous_storage_mode(self) -> StorageMode:
        return StorageMode(
            self.settings.get_int(KEY_STORAGE_MODE_PREVIOUS, StorageMode.DEVICE)
        )

    def last_transfer_succeeded(self) -> bool:
        """False if the last move between storage locations failed."""
        return self.settings.get_bool(KEY_TRANSFER_SUCCESS, True)

    def get_transfer_record(self) -> TransferRecord:
        with self.settings.lock:
            return TransferRecord(
                current_mode=StorageMode(
                    self.settings.get_int(KEY_STORAGE_MODE_CURRENT, StorageMode.DEVICE)
                ),
                previous_mode=self.get_previous_storage_mode(),
                last_transfer_succeeded=self.last_transfer_succeeded()
            )

    def set_storage_mode(self, new_mode: StorageMode) -> None:
        """Change the storage mode and move existing files to its directory.

        The new mode, the old mode and the transfer outcome are persisted
        whether or not the transfer succeeds.

        Args:
            new_mode: Storage mode to switch to

        Raises:
            TransferError: If the files were not moved. The mode is still changed.
        """
        new_mode = StorageMode(new_mode)

        with self.settings.lock:
            old_mode = self.reload_storage_mode()
            if new_mode == old_mode:
                return

            self.close()

            transfer_success = False
            try:
                self.file_transfer.transfer(old_mode, new_mode)
                transfer_success = True
            finally:
                with self.settings.edit() as editor:
                    editor[KEY_STORAGE_MODE_CURRENT] = int(new_mode)
                    editor[KEY_STORAGE_MODE_PREVIOUS] = int(old_mode)
                    editor[KEY_TRANSFER_SUCCESS] = transfer_success
                self._storage_mode = new_mode
                logger.info(f"Storage mode changed from {old_mode.name} to {new_mode.name} "
                            f"(transfer {'succeeded' if transfer_success else 'failed'})")

    def retry_pending_transfer(self) -> bool:
        """Move files left behind by a failed transfer into the current location.

        Returns:
            True if a transfer was attempted and succeeded, False if nothing was pending

        Raises:
            TransferError: If the files were still not moved
        """
        with self.settings.lock:
            current_mode = self.reload_storage_mode()

            if self.last_transfer_succeeded():
                return False

            previous_mode = self.get_previous_storage_mode()
            if previous_mode == current_mode:
                return False

            self.close()

            transfer_success = False
            try:
                self.file_transfer.transfer(previous_mode, current_mode)
                transfer_success = True
            finally:
                self.settings.put(KEY_TRANSFER_SUCCESS, transfer_success)
                logger.info(f"Retried transfer from {previous_mode.name} to "
                            f"{current_mode.name}: "
                            f"{'succeeded' if transfer_success else 'failed'}")

        return True

    # Storage state

    def refresh_external_availability(self) -> StorageState:
        """Re-probe the external medium.

        Returns:
            The external medium's state right now
        """
        self._external_state = self.locations.probe_external()
        return self._external_state

    def get_storage_state(self) -> StorageState:
        """Current state of access to the database files."""
        if self._storage_mode is StorageMode.DEVICE:
            return StorageState.READWRITE
        return self._external_state

    def get_available_space(self, mode: Optional[StorageMode] = None) -> int:
        """Free bytes in a storage mode's directory, current mode by default.

        Raises:
            ValueError: If the mode is not a known storage mode
        """
        mode = self._storage_mode if mode is None else StorageMode(mode)
        if mode is StorageMode.EXTERNAL and \
                self._external_state is StorageState.UNAVAILABLE:
            return 0
        return self.locations.available_space(mode)

    # Location resolution

    def storage_directory(self, mode: Optional[StorageMode] = None) -> Path:
        return self.locations.directory_for(self._storage_mode if mode is None else mode)

    def database_path(self, name: DatabaseName) -> Path:
        return self.storage_directory() / f"{name}{DATABASE_EXTENSION}"

    def checksum_path(self, name: DatabaseName) -> Path:
        return self.storage_directory() / f"{name}{CHECKSUM_EXTENSION}"

    def database_exists(self, name: DatabaseName) -> bool:
        """Check whether the database file exists in the current location."""
        try:
            return self.database_path(name).is_file()
        except ValueError:
            return False

    def get_database_version(self, name: DatabaseName) -> int:
        """Get the version of a database file, or -1 if it does not exist."""
        if not self.database_exists(name):
            return -1
        return self.engine.get_version(self.database_path(name))

    def get_file(self, name: DatabaseName, create: bool = True) -> Path:
        """Get the database file in the current location.

        Args:
            name: Name of the database
            create: Create an empty file if it does not exist
        """
        path = self.database_path(name)
        if create and not path.exists():
            path.touch()
        return path

    def get_database(self, name: DatabaseName) -> sqlite3.Connection:
        """Open a new connection on a database, creating the file if necessary."""
        return self.engine.connect(self.get_file(name), create=True)

    def delete_database(self, name: DatabaseName) -> bool:
        """Delete a database file and its checksum from the current location.

        Returns:
            True if the database file was deleted
        """
        self.checksums.remove_checksum(name)
        if not self.database_exists(name):
            return False

        db_path = self.database_path(name)
        db_path.unlink()
        logger.info(f"Deleted database {name} from {db_path.parent}")
        self.notify_change(name)
        return True

    # Held connection

    def open_database(self, name: DatabaseName) -> sqlite3.Connection:
        """Open a database, closing any database this manager already holds.

        Raises:
            EngineError: If the file does not exist or cannot be opened
        """
        with self._connection_lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
            self._connection = self.engine.connect(self.database_path(name))
            return self._connection

    def close(self) -> None:
        """Close the database held by this manager, if any."""
        with self._connection_lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> Optional[sqlite3.Connection]:
        return self._connection

    # Updates

    def run_updates(self, name: DatabaseName, manager: IUpdateManager) -> UpdateState:
        """Create or upgrade a database in the current location.

        See :class:`UpdateOrchestrator`. The update manager is responsible
        for writing the new version into the database.
        """
        return self.updates.run_updates(name, manager)

    def run_updates_async(self, name: DatabaseName, manager: IUpdateManager,
                          listener: IUpdateCompleteListener) -> threading.Thread:
        """Run :meth:`run_updates` on a background thread."""
        return self.updates.run_updates_async(name, manager, listener)

    # Change listeners

    def register_change_listener(self, listener: ListenerLike) -> ChangeListener:
        return self.notifier.register(listener)

    def unregister_change_listener(self, listener: ListenerLike) -> bool:
        return self.notifier.unregister(listener)

    def notify_change(self, name: str) -> None:
        """Tell registered listeners that a table or database changed."""
        self.notifier.notify(name)

    # Checksums

    def compute_checksum(self, name: DatabaseName) -> Optional[Checksum]:
        return self.checksums.compute_checksum(name)

    def store_checksum(self, name: DatabaseName) -> Optional[Checksum]:
        return self.checksums.store_checksum(name)

    def load_checksum(self, name: DatabaseName) -> Optional[Checksum]:
        return self.checksums.load_checksum(name)

    def check_integrity(self, name: DatabaseName, expected: Any = STORED) -> IntegrityResult:
        return self.checksums.check_integrity(name, expected)

    def verify_integrity(self, name: DatabaseName, expected: Any = STORED) -> bool:
        return self.checksums.verify_integrity(name, expected)

    def __enter__(self) -> 'StorageManager':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
