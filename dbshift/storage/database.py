"""Thin SQLite engine wrapper for opening database files and reading versions."""

import sqlite3
import logging
from pathlib import Path
from typing import Iterator
from contextlib import contextmanager

from ..core.exceptions import EngineError


logger = logging.getLogger(__name__)


class SQLiteEngine:
    """Opens database files and reads or writes their version header.

    The version header is SQLite's ``user_version`` pragma.
    """

    def connect(self, db_path: Path, create: bool = False) -> sqlite3.Connection:
        """Open a connection on a database file.

        Args:
            db_path: Path to the database file
            create: Create the file if it does not exist

        Raises:
            EngineError: If the file is missing (and create is False) or unreadable
        """
        mode = "rwc" if create else "rw"
        try:
            conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode={mode}",
                                   uri=True, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as e:
            logger.error(f"Cannot open database {db_path}: {e}")
            raise EngineError(f"Cannot open database {db_path}", e) from e

    @contextmanager
    def _get_connection(self, db_path: Path, create: bool = False) -> Iterator[sqlite3.Connection]:
        """Get a short-lived connection with proper error handling."""
        conn = self.connect(db_path, create)
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error on {db_path}: {e}")
            raise EngineError(f"Database operation failed on {db_path}", e) from e
        finally:
            conn.close()

    def get_version(self, db_path: Path) -> int:
        """Read the version header of an existing database file."""
        with self._get_connection(db_path) as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def set_version(self, db_path: Path, version: int) -> None:
        """Write the version header, creating the file if needed."""
        with self._get_connection(db_path, create=True) as conn:
            conn.execute(f"PRAGMA user_version = {int(version)}")
            conn.commit()
