"""Persistent key-value settings backed by SQLite."""

import json
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterator
from contextlib import contextmanager

from ..core.exceptions import SettingsError


logger = logging.getLogger(__name__)

# One lock per settings file, shared by every store in the process.
_file_locks: Dict[str, threading.RLock] = {}
_file_locks_guard = threading.Lock()


def lock_for(path: Path) -> threading.RLock:
    """Get the process-wide lock guarding a settings file."""
    key = str(path.resolve())
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _file_locks[key] = lock
        return lock


class SettingsStore:
    """Small namespaced key-value store that survives process restarts.

    Values are stored as JSON text so ints and bools come back with
    their original type. Besides the reads and writes the storage manager
    needs, ``remove`` and ``all`` are provided for callers that keep
    their own keys in the same namespace.
    """

    def __init__(self, db_path: Path, namespace: str = "dbmanager"):
        """Initialize settings store.

        Args:
            db_path: Path to SQLite settings file
            namespace: Prefix isolating this store's keys
        """
        self.db_path = db_path
        self.namespace = namespace
        self.lock = lock_for(db_path)
        self._ensure_store_exists()

    def _ensure_store_exists(self) -> None:
        """Create settings file and table if they don't exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SettingsError(f"Cannot create settings directory: {e}") from e

        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
            """)
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get settings connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(str(self.db_path))
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Settings store error: {e}")
            raise SettingsError(f"Settings operation failed: {e}") from e
        finally:
            if conn:
                conn.close()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a stored value, or default if the key was never written."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM preferences WHERE namespace = ? AND key = ?",
                (self.namespace, key)
            ).fetchone()

        if row is None:
            return default
        return json.loads(row[0])

    def get_int(self, key: str, default: int = 0) -> int:
        return int(self.get(key, default))

    def get_bool(self, key: str, default: bool = False) -> bool:
        return bool(self.get(key, default))

    def put(self, key: str, value: Any) -> None:
        """Store a single value."""
        with self.edit() as editor:
            editor[key] = value

    @contextmanager
    def edit(self) -> Iterator[Dict[str, Any]]:
        """Collect several writes and commit them in one transaction.

        Nothing is written if the block raises.
        """
        pending: Dict[str, Any] = {}
        yield pending

        if not pending:
            return

        with self._get_connection() as conn:
            conn.executemany(
                "INSERT OR REPLACE INTO preferences (namespace, key, value) "
                "VALUES (?, ?, ?)",
                [(self.namespace, key, json.dumps(value))
                 for key, value in pending.items()]
            )
            conn.commit()

        logger.debug(f"Committed settings {sorted(pending)} to {self.db_path}")

    def remove(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "DELETE FROM preferences WHERE namespace = ? AND key = ?",
                (self.namespace, key)
            )
            conn.commit()

    def all(self) -> Dict[str, Any]:
        """Get every value stored under this namespace."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT key, value FROM preferences WHERE namespace = ?",
                (self.namespace,)
            ).fetchall()
        return {key: json.loads(value) for key, value in rows}
