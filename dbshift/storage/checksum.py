"""MD5 checksums stored in sidecar files next to each database."""

import hashlib
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from ..core.interfaces import IPathResolver
from ..core.models import Checksum, DatabaseName, IntegrityResult, CHECKSUM_LENGTH


logger = logging.getLogger(__name__)

# Default for "compare against the stored sidecar value".
STORED = object()


class ChecksumEngine:
    """Computes, stores and compares content digests for database files.

    A missing file is never an error here, nor is a storage location that
    cannot be resolved: compute and load return None and verification
    reports that it could not be done.
    """

    def __init__(self, resolver: IPathResolver, block_size: int = 1024):
        """Initialize checksum engine.

        Args:
            resolver: Maps database names to primary and sidecar paths
            block_size: Bytes read per step while hashing
        """
        if block_size <= 0:
            raise ValueError("block_size must be greater than 0")
        self.resolver = resolver
        self.block_size = block_size

    def compute_checksum(self, name: DatabaseName) -> Optional[Checksum]:
        """Calculate the MD5 checksum of a database file.

        Args:
            name: Name of the database

        Returns:
            Lowercase 32 character hex digest, or None if the file does not exist
        """
        db_path = self._resolve(self.resolver.database_path, name)
        if db_path is None or not db_path.is_file():
            return None

        digest = hashlib.md5()
        with open(db_path, 'rb') as f:
            for block in iter(lambda: f.read(self.block_size), b''):
                digest.update(block)

        return digest.hexdigest()

    def store_checksum(self, name: DatabaseName) -> Optional[Checksum]:
        """Calculate and store the checksum of a database.

        The sidecar is named ``<name>.csm`` and holds only the hex digest.

        Returns:
            The stored checksum, or None if the database does not exist
        """
        checksum = self.compute_checksum(name)
        if checksum is None:
            logger.debug(f"No database file for {name}, checksum not stored")
            return None

        checksum_path = self._resolve(self.resolver.checksum_path, name)
        if checksum_path is None:
            return None
        checksum_path.write_text(checksum, encoding='ascii')

        logger.debug(f"Stored checksum for {name}: {checksum}")
        return checksum

    def load_checksum(self, name: DatabaseName) -> Optional[Checksum]:
        """Load the stored checksum for a database.

        Returns:
            The stored checksum or None if the sidecar file is not found
        """
        checksum_path = self._resolve(self.resolver.checksum_path, name)
        if checksum_path is None or not checksum_path.is_file():
            return None

        with open(checksum_path, 'r', encoding='ascii', errors='replace') as f:
            return f.read(CHECKSUM_LENGTH)

    def check_integrity(self, name: DatabaseName,
                        expected: Any = STORED) -> IntegrityResult:
        """Compare a database's computed checksum with a reference value.

        Args:
            name: Name of the database
            expected: Reference checksum; the stored sidecar value when omitted.
                An explicit None can never verify.

        Returns:
            UNAVAILABLE if either side is missing, otherwise VERIFIED or MISMATCHED
        """
        reference = self.load_checksum(name) if expected is STORED else expected
        if reference is None:
            return IntegrityResult.UNAVAILABLE

        computed = self.compute_checksum(name)
        if computed is None:
            return IntegrityResult.UNAVAILABLE

        if computed.lower() == reference.lower():
            return IntegrityResult.VERIFIED

        logger.warning(f"Checksum mismatch for {name}: "
                       f"expected {reference}, got {computed}")
        return IntegrityResult.MISMATCHED

    def verify_integrity(self, name: DatabaseName,
                         expected: Any = STORED) -> bool:
        """True only if the checksum could be computed and matches.

        Use :meth:`check_integrity` to tell a mismatch from a missing file.
        """
        return self.check_integrity(name, expected) is IntegrityResult.VERIFIED

    def remove_checksum(self, name: DatabaseName) -> bool:
        """Delete a database's sidecar file.

        Returns:
            True if a sidecar file was deleted
        """
        checksum_path = self._resolve(self.resolver.checksum_path, name)
        if checksum_path is None or not checksum_path.is_file():
            return False
        checksum_path.unlink()
        return True

    def _resolve(self, resolve: Callable[[DatabaseName], Path],
                 name: DatabaseName) -> Optional[Path]:
        try:
            return resolve(name)
        except ValueError as e:
            logger.debug(f"No location for {name}: {e}")
            return None
