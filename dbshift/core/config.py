"""Configuration management for dbshift."""

import logging
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, asdict, field

from .models import DATABASE_EXTENSION, CHECKSUM_EXTENSION


logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".dbshift"

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


@dataclass
class StorageConfig:
    """Storage location configuration.

    Relative paths are resolved against the project root. A missing
    ``external_dir`` means the external medium is never available.
    """
    device_dir: str = f"{CONFIG_DIR_NAME}/databases"
    external_dir: Optional[str] = None
    settings_file: str = f"{CONFIG_DIR_NAME}/preferences.db"
    settings_namespace: str = "dbmanager"


@dataclass
class ChecksumConfig:
    """Checksum computation configuration."""
    block_size: int = 1024


@dataclass
class TransferConfig:
    """File transfer configuration."""
    extensions: List[str] = field(
        default_factory=lambda: [DATABASE_EXTENSION, CHECKSUM_EXTENSION]
    )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"


@dataclass
class DbShiftConfig:
    """Complete configuration for dbshift."""
    storage: StorageConfig
    checksum: ChecksumConfig
    transfer: TransferConfig
    logging: LoggingConfig

    def __init__(self):
        self.storage = StorageConfig()
        self.checksum = ChecksumConfig()
        self.transfer = TransferConfig()
        self.logging = LoggingConfig()


class ConfigManager:
    """Manages configuration loading, saving, and validation."""

    DEFAULT_CONFIG_NAME = "config.yml"

    def __init__(self, project_root: Optional[Path] = None):
        self.project_root = project_root or Path.cwd()
        self.config_dir = self.project_root / CONFIG_DIR_NAME
        self.config_path = self.config_dir / self.DEFAULT_CONFIG_NAME

    def load_config(self, config_path: Optional[Path] = None) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        path = config_path or self.config_path

        if not path.exists():
            return self.get_default_config()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

            # Merge with defaults to ensure all keys are present
            default_config = self.get_default_config()
            return self._merge_configs(default_config, config_data)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return self.get_default_config()

    def save_config(self, config: Dict[str, Any], config_path: Optional[Path] = None) -> bool:
        """Save configuration to YAML file."""
        path = config_path or self.config_path

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(config, f, default_flow_style=False, indent=2)

            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save config to {path}: {e}")
            return False

    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        default_config = DbShiftConfig()
        return {
            'storage': asdict(default_config.storage),
            'checksum': asdict(default_config.checksum),
            'transfer': asdict(default_config.transfer),
            'logging': asdict(default_config.logging)
        }

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """Validate configuration and return any errors."""
        errors = []

        storage = config.get('storage', {})
        if not storage.get('device_dir'):
            errors.append("storage.device_dir must be set")

        if not storage.get('settings_file'):
            errors.append("storage.settings_file must be set")

        if not storage.get('settings_namespace'):
            errors.append("storage.settings_namespace must be set")

        device_dir = storage.get('device_dir')
        external_dir = storage.get('external_dir')
        if device_dir and external_dir and \
                self.resolve_path(device_dir) == self.resolve_path(external_dir):
            errors.append("storage.external_dir must differ from storage.device_dir")

        checksum = config.get('checksum', {})
        block_size = checksum.get('block_size', 1024)
        if not isinstance(block_size, int) or block_size <= 0:
            errors.append("checksum.block_size must be greater than 0")

        transfer = config.get('transfer', {})
        extensions = transfer.get('extensions', [])
        if not extensions:
            errors.append("transfer.extensions must not be empty")
        elif any(not str(ext).startswith('.') for ext in extensions):
            errors.append("transfer.extensions entries must start with '.'")

        level = str(config.get('logging', {}).get('level', 'WARNING')).upper()
        if level not in LOG_LEVELS:
            errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}")

        return errors

    def resolve_path(self, value: str) -> Path:
        """Resolve a configured path against the project root."""
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.project_root / path
        return path

    def _merge_configs(self, default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with default config."""
        result = default.copy()

        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def create_default_config_file(self) -> bool:
        """Create a default configuration file."""
        return self.save_config(self.get_default_config())

    def get_config_path(self) -> Path:
        """Get the path to the configuration file."""
        return self.config_path
