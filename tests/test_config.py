"""Tests for configuration management."""

import tempfile
from pathlib import Path

from dbshift.core.config import ConfigManager, DbShiftConfig
from dbshift.storage.locations import StorageLocations


class TestConfigManager:
    """Test cases for ConfigManager."""

    def test_default_config_creation(self):
        """Test that default configuration is created correctly."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_manager = ConfigManager(Path(temp_dir))

            default_config = config_manager.get_default_config()

            assert set(default_config) == {'storage', 'checksum', 'transfer', 'logging'}
            assert default_config['storage']['external_dir'] is None
            assert default_config['storage']['settings_namespace'] == 'dbmanager'
            assert default_config['checksum']['block_size'] == 1024
            assert default_config['transfer']['extensions'] == ['.s3db', '.csm']
            assert default_config['logging']['level'] == 'WARNING'

    def test_config_validation(self):
        """Test configuration validation."""
        config_manager = ConfigManager()

        valid_config = config_manager.get_default_config()
        assert config_manager.validate_config(valid_config) == []

        invalid_config = {
            'storage': {'device_dir': 'data', 'external_dir': 'data',
                        'settings_file': 'prefs.db', 'settings_namespace': ''},
            'checksum': {'block_size': 0},
            'transfer': {'extensions': ['s3db']},
            'logging': {'level': 'loud'}
        }
        errors = config_manager.validate_config(invalid_config)

        assert any('settings_namespace must be set' in error for error in errors)
        assert any('external_dir must differ' in error for error in errors)
        assert any('block_size must be greater than 0' in error for error in errors)
        assert any("must start with '.'" in error for error in errors)
        assert any('logging.level' in error for error in errors)

    def test_empty_extensions_invalid(self):
        config_manager = ConfigManager()
        config = config_manager.get_default_config()
        config['transfer']['extensions'] = []

        assert any('must not be empty' in error
                   for error in config_manager.validate_config(config))

    def test_config_file_operations(self):
        """Test saving and loading configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_manager = ConfigManager(Path(temp_dir))

            assert config_manager.create_default_config_file() is True
            assert config_manager.get_config_path().exists()

            assert config_manager.load_config() == config_manager.get_default_config()

    def test_partial_config_is_merged(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config_manager = ConfigManager(Path(temp_dir))
            config_manager.config_dir.mkdir()
            config_manager.config_path.write_text("storage:\n  external_dir: /media/sd\n")

            config = config_manager.load_config()

            assert config['storage']['external_dir'] == '/media/sd'
            assert config['storage']['device_dir'] == '.dbshift/databases'
            assert config['checksum']['block_size'] == 1024

    def test_invalid_yaml_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config_manager = ConfigManager(Path(temp_dir))
            config_manager.config_dir.mkdir()
            config_manager.config_path.write_text("storage: [unclosed\n")

            assert config_manager.load_config() == config_manager.get_default_config()

    def test_resolve_path(self):
        config_manager = ConfigManager(Path("/srv/app"))

        assert config_manager.resolve_path("data/db") == Path("/srv/app/data/db")
        assert config_manager.resolve_path("/media/sd") == Path("/media/sd")


class TestStorageLocationsFromConfig:
    """Building storage locations from configuration."""

    def test_relative_paths_resolved(self):
        config = ConfigManager().get_default_config()
        config['storage']['external_dir'] = 'sdcard'

        locations = StorageLocations.from_config(config, Path("/srv/app"))

        assert locations.device_dir == Path("/srv/app/.dbshift/databases")
        assert locations.external_dir == Path("/srv/app/sdcard")

    def test_no_external_dir(self):
        config = ConfigManager().get_default_config()

        locations = StorageLocations.from_config(config, Path("/srv/app"))

        assert locations.external_dir is None


class TestDbShiftConfig:
    """Test cases for DbShiftConfig dataclass."""

    def test_config_initialization(self):
        config = DbShiftConfig()

        assert config.storage.device_dir == '.dbshift/databases'
        assert config.checksum.block_size == 1024
        assert config.logging.level == 'WARNING'
