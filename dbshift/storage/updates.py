"""Create-or-upgrade orchestration for named databases."""

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

from ..core.exceptions import CreationError, InitializationError, UpgradeError
from ..core.interfaces import IPathResolver, IUpdateCompleteListener, IUpdateManager
from ..core.models import DatabaseName, UpdateState
from .database import SQLiteEngine


logger = logging.getLogger(__name__)


class UpdateOrchestrator:
    """Decides whether a database needs its create or upgrade callback.

    A database that does not exist yet gets an empty file and the
    manager's ``on_create``. An existing one is upgraded only when its
    stored version is behind the manager's version *and* the manager's
    ``needs_update`` agrees.
    """

    def __init__(self, resolver: IPathResolver, engine: Optional[SQLiteEngine] = None,
                 on_change: Optional[Callable[[DatabaseName], None]] = None):
        self.resolver = resolver
        self.engine = engine or SQLiteEngine()
        self.on_change = on_change
        self._states: Dict[DatabaseName, UpdateState] = {}
        self._lock = threading.Lock()

    def get_state(self, name: DatabaseName) -> UpdateState:
        with self._lock:
            return self._states.get(name, UpdateState.UNINITIALIZED)

    def _set_state(self, name: DatabaseName, state: UpdateState) -> None:
        with self._lock:
            self._states[name] = state

    def run_updates(self, name: DatabaseName, manager: IUpdateManager) -> UpdateState:
        """Run required updates for a database.

        Args:
            name: Name of the database
            manager: Supplies version metadata and create/upgrade callbacks

        Returns:
            CREATED if the database was just created, otherwise UP_TO_DATE

        Raises:
            InitializationError: If the manager fails to initialize
            CreationError: If the database could not be created
            UpgradeError: If the database could not be upgraded
            EngineError: If the existing file's version cannot be read
        """
        self._initialize(manager)

        db_path = self.resolver.database_path(name)

        if not db_path.exists():
            self._create(name, db_path, manager)
            self._set_state(name, UpdateState.CREATED)
        else:
            self._upgrade(name, db_path, manager)
            self._set_state(name, UpdateState.UP_TO_DATE)

        return self.get_state(name)

    def run_updates_async(self, name: DatabaseName, manager: IUpdateManager,
                          listener: IUpdateCompleteListener) -> threading.Thread:
        """Run updates on a background thread without blocking.

        Exactly one of ``listener.on_complete`` or ``listener.on_error`` is
        called, once, after the run finishes.

        Returns:
            The started thread
        """
        def run() -> None:
            try:
                self.run_updates(name, manager)
            except Exception as e:
                logger.error(f"Background update of {name} failed: {e}")
                callback, args = listener.on_error, (e,)
            else:
                callback, args = listener.on_complete, ()

            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Error in update listener for {name}: {e}")

        thread = threading.Thread(target=run, daemon=True, name=f"DatabaseUpdate-{name}")
        thread.start()
        return thread

    def _initialize(self, manager: IUpdateManager) -> None:
        try:
            manager.initialize()
        except InitializationError:
            raise
        except Exception as e:
            raise InitializationError(cause=e) from e

    def _create(self, name: DatabaseName, db_path: Path, manager: IUpdateManager) -> None:
        logger.info(f"Creating database {name} at {db_path}")
        try:
            db_path.touch()
            manager.on_create(db_path)
        except Exception as e:
            # An empty placeholder would be mistaken for a version 0 database
            if db_path.exists() and db_path.stat().st_size == 0:
                db_path.unlink()
            if isinstance(e, CreationError):
                raise
            raise CreationError(cause=e) from e

        self._notify(name)

    def _upgrade(self, name: DatabaseName, db_path: Path, manager: IUpdateManager) -> None:
        old_version = self.engine.get_version(db_path)
        new_version = manager.get_current_version()

        if old_version >= new_version:
            logger.debug(f"Database {name} is up to date (version {old_version})")
            return

        if not manager.needs_update(old_version, new_version):
            logger.debug(f"Manager declined upgrade of {name} "
                         f"from {old_version} to {new_version}")
            return

        logger.info(f"Upgrading database {name} from {old_version} to {new_version}")
        try:
            manager.on_upgrade(db_path, old_version, new_version)
        except UpgradeError:
            raise
        except Exception as e:
            raise UpgradeError(old_version, new_version, e) from e

        self._notify(name)

    def _notify(self, name: DatabaseName) -> None:
        if self.on_change is not None:
            self.on_change(name)
