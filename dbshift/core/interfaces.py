"""Interfaces for collaborators supplied by the application."""

from abc import ABC, abstractmethod
from pathlib import Path

from .models import DatabaseName


class IUpdateManager(ABC):
    """Supplies create/upgrade logic and version metadata for a database.

    The manager, not the orchestrator, is responsible for writing the new
    version number into the database.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the manager. Raise InitializationError on failure."""
        pass

    @abstractmethod
    def get_current_version(self) -> int:
        """Version the database should be at after updating."""
        pass

    @abstractmethod
    def needs_update(self, old_version: int, new_version: int) -> bool:
        """Whether an upgrade from old_version to new_version is wanted."""
        pass

    @abstractmethod
    def on_create(self, file_path: Path) -> None:
        """Build a new database in the (empty) file. Raise CreationError on failure."""
        pass

    @abstractmethod
    def on_upgrade(self, file_path: Path, old_version: int, new_version: int) -> None:
        """Upgrade the database in place. Raise UpgradeError on failure."""
        pass


class IUpdateCompleteListener(ABC):
    """Completion callbacks for background update runs."""

    @abstractmethod
    def on_complete(self) -> None:
        pass

    @abstractmethod
    def on_error(self, error: Exception) -> None:
        pass


class IPathResolver(ABC):
    """Maps a logical database name to files in the active location."""

    @abstractmethod
    def database_path(self, name: DatabaseName) -> Path:
        """Path of the primary data file."""
        pass

    @abstractmethod
    def checksum_path(self, name: DatabaseName) -> Path:
        """Path of the sidecar checksum file."""
        pass
