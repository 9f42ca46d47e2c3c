"""Storage layer components for database location and integrity management."""

from .checksum import ChecksumEngine
from .database import SQLiteEngine
from .locations import StorageLocations
from .manager import StorageManager
from .settings import SettingsStore
from .transfer import FileTransfer
from .updates import UpdateOrchestrator
from ..core.exceptions import StorageError, TransferError, SettingsError

__all__ = [
    'ChecksumEngine',
    'SQLiteEngine',
    'StorageLocations',
    'StorageManager',
    'SettingsStore',
    'FileTransfer',
    'UpdateOrchestrator',
    'StorageError',
    'TransferError',
    'SettingsError'
]
