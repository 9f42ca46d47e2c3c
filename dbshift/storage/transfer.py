"""Batch move of database files between storage locations."""

import shutil
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..core.exceptions import TransferError
from ..core.models import StorageMode, DATABASE_EXTENSION, CHECKSUM_EXTENSION
from .locations import StorageLocations


logger = logging.getLogger(__name__)


class FileTransfer:
    """Copies every recognized database file to another location, then
    deletes the originals.

    Sources are only deleted once every copy has succeeded, so a failure
    can leave duplicates but never loses a file. Which files moved before
    a failure is not reported.
    """

    def __init__(self, locations: StorageLocations,
                 extensions: Optional[Iterable[str]] = None):
        """Initialize file transfer.

        Args:
            locations: Directories for each storage mode
            extensions: File suffixes to move (database and checksum files by default)
        """
        self.locations = locations
        self.extensions = tuple(extensions or (DATABASE_EXTENSION, CHECKSUM_EXTENSION))

    def list_files(self, mode: StorageMode) -> List[Path]:
        """List recognized files in a storage mode's directory.

        Raises:
            OSError: If the directory cannot be read
            ValueError: If the mode has no directory
        """
        directory = self.locations.directory_for(mode)
        return sorted(
            path for path in directory.iterdir()
            if path.is_file() and path.name.endswith(self.extensions)
        )

    def transfer(self, source: StorageMode, destination: StorageMode) -> List[Path]:
        """Move all recognized files from source to destination.

        Args:
            source: Storage mode to move files out of
            destination: Storage mode to move files into

        Returns:
            Paths of the files now at the destination

        Raises:
            TransferError: If listing, copying or deleting fails
        """
        try:
            logger.debug("Retrieving existing database files")
            files = self.list_files(source)
            target_dir = self.locations.directory_for(destination)

            logger.debug(f"Copying {len(files)} files to {target_dir}")
            copied = []
            for file_path in files:
                target = target_dir / file_path.name
                shutil.copyfile(file_path, target)
                copied.append(target)

            logger.debug("Deleting old database files")
            for file_path in files:
                file_path.unlink()

            logger.debug("Transfer success")
            return copied

        except Exception as e:
            logger.error(f"Error transferring files from {source!r} to {destination!r}: {e}")
            raise TransferError(e) from e
