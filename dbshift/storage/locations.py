"""Storage location context and external medium probing."""

import os
import shutil
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.config import ConfigManager
from ..core.models import StorageMode, StorageState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageLocations:
    """Directories backing each storage mode.

    Constructed explicitly and passed to whatever needs it; there is no
    process-wide instance.
    """
    device_dir: Path
    external_dir: Optional[Path] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any],
                    project_root: Optional[Path] = None) -> 'StorageLocations':
        """Build locations from a loaded configuration dictionary."""
        config_manager = ConfigManager(project_root)
        storage = config.get('storage', {})
        external = storage.get('external_dir')
        return cls(
            device_dir=config_manager.resolve_path(storage['device_dir']),
            external_dir=config_manager.resolve_path(external) if external else None
        )

    def directory_for(self, mode: StorageMode) -> Path:
        """Get the directory for a storage mode.

        Raises:
            ValueError: If the mode is unknown or has no directory configured
        """
        mode = StorageMode(mode)
        if mode is StorageMode.DEVICE:
            return self.device_dir
        if self.external_dir is None:
            raise ValueError("No external storage directory configured")
        return self.external_dir

    def probe_external(self) -> StorageState:
        """Inspect the external medium's current accessibility.

        Not cached: every call looks at the filesystem again.
        """
        if self.external_dir is None or not self.external_dir.is_dir():
            return StorageState.UNAVAILABLE

        if os.access(self.external_dir, os.R_OK | os.W_OK | os.X_OK):
            return StorageState.READWRITE
        if os.access(self.external_dir, os.R_OK | os.X_OK):
            return StorageState.READONLY
        return StorageState.UNAVAILABLE

    def available_space(self, mode: StorageMode) -> int:
        """Free bytes on the filesystem holding the mode's directory."""
        directory = self.directory_for(mode)
        try:
            return shutil.disk_usage(directory).free
        except OSError as e:
            logger.warning(f"Cannot stat {directory}: {e}")
            return 0
