"""Integration tests for CLI functionality."""

import hashlib
import tempfile
import shutil
from pathlib import Path
from click.testing import CliRunner

from dbshift.cli.main import cli
from dbshift.core.config import ConfigManager


class CLITestCase:
    """Shared setup for CLI tests."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()
        self.temp_dir = Path(tempfile.mkdtemp())
        self.external_dir = self.temp_dir / "sdcard"
        self.device_dir = self.temp_dir / ".dbshift" / "databases"

    def teardown_method(self):
        """Clean up test environment."""
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)

    def invoke(self, *args):
        return self.runner.invoke(cli, ['--project-root', str(self.temp_dir), *args])

    def initialize(self):
        self.external_dir.mkdir(exist_ok=True)
        result = self.invoke('init', '--external-dir', str(self.external_dir))
        assert result.exit_code == 0, result.output
        return result


class TestCLIBasics(CLITestCase):
    """Test CLI initialization and basic functionality."""

    def test_cli_help(self):
        result = self.runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'dbshift' in result.output
        for command in ['init', 'status', 'mode', 'retry', 'checksum']:
            assert command in result.output

    def test_status_not_initialized(self):
        result = self.invoke('status')
        assert result.exit_code == 0
        assert 'Not initialized' in result.output

    def test_invalid_config_path(self):
        result = self.runner.invoke(cli, ['--config', '/nonexistent/config.yml', 'status'])
        assert result.exit_code != 0

    def test_invalid_config_aborts(self):
        config_manager = ConfigManager(self.temp_dir)
        config = config_manager.get_default_config()
        config['checksum']['block_size'] = -1
        config_manager.save_config(config)

        result = self.invoke('status')

        assert result.exit_code == 1
        assert 'block_size' in result.output


class TestInitCommand(CLITestCase):
    """Test the init command functionality."""

    def test_init(self):
        result = self.initialize()

        assert 'initialized successfully' in result.output
        assert (self.temp_dir / ".dbshift" / "config.yml").exists()
        assert self.device_dir.is_dir()

        config = ConfigManager(self.temp_dir).load_config()
        assert config['storage']['external_dir'] == str(self.external_dir.resolve())

    def test_init_twice(self):
        self.initialize()

        result = self.invoke('init')

        assert result.exit_code == 0
        assert 'already initialized' in result.output


class TestModeCommands(CLITestCase):
    """Test switching modes from the command line."""

    def test_switch_to_external(self):
        self.initialize()
        (self.device_dir / "comics.s3db").write_bytes(b"comics")

        result = self.invoke('mode', 'external')

        assert result.exit_code == 0, result.output
        assert 'Storage mode changed to external' in result.output
        assert (self.external_dir / "comics.s3db").exists()
        assert not (self.device_dir / "comics.s3db").exists()

        status = self.invoke('status')
        assert status.exit_code == 0
        assert 'external' in status.output
        assert 'succeeded' in status.output

    def test_switch_to_current_mode(self):
        self.initialize()

        result = self.invoke('mode', 'device')

        assert result.exit_code == 0
        assert 'already device' in result.output

    def test_failed_switch_and_retry(self):
        self.initialize()
        (self.device_dir / "comics.s3db").write_bytes(b"comics")
        self.external_dir.rmdir()

        result = self.invoke('mode', 'external')

        assert result.exit_code == 1
        assert 'files were not moved' in result.output
        assert (self.device_dir / "comics.s3db").exists()

        status = self.invoke('status')
        assert 'pending' in status.output

        self.external_dir.mkdir()
        result = self.invoke('retry')

        assert result.exit_code == 0, result.output
        assert 'Pending transfer completed' in result.output
        assert (self.external_dir / "comics.s3db").exists()

    def test_retry_without_pending_transfer(self):
        self.initialize()

        result = self.invoke('retry')

        assert result.exit_code == 0
        assert 'No pending transfer' in result.output


class TestChecksumCommands(CLITestCase):
    """Test checksum commands."""

    def test_compute_store_verify(self):
        self.initialize()
        content = b"comics database"
        (self.device_dir / "comics.s3db").write_bytes(content)
        expected = hashlib.md5(content).hexdigest()

        result = self.invoke('checksum', 'compute', 'comics')
        assert result.exit_code == 0
        assert expected in result.output

        result = self.invoke('checksum', 'store', 'comics')
        assert result.exit_code == 0
        assert (self.device_dir / "comics.csm").read_text() == expected

        result = self.invoke('checksum', 'verify', 'comics')
        assert result.exit_code == 0
        assert 'verified' in result.output

        result = self.invoke('checksum', 'verify', 'comics', '--expected', expected.upper())
        assert result.exit_code == 0

    def test_verify_mismatch(self):
        self.initialize()
        (self.device_dir / "comics.s3db").write_bytes(b"comics database")

        result = self.invoke('checksum', 'verify', 'comics', '--expected', '0' * 32)

        assert result.exit_code == 1
        assert 'mismatch' in result.output

    def test_verify_unavailable(self):
        self.initialize()
        (self.device_dir / "comics.s3db").write_bytes(b"comics database")

        result = self.invoke('checksum', 'verify', 'comics')

        assert result.exit_code == 2
        assert 'cannot verify' in result.output

    def test_missing_database(self):
        self.initialize()

        assert self.invoke('checksum', 'compute', 'missing').exit_code == 1
        assert self.invoke('checksum', 'store', 'missing').exit_code == 1

    def test_checksum_after_switch_to_unconfigured_external(self):
        """Checksum commands report a missing database instead of crashing."""
        result = self.invoke('init')
        assert result.exit_code == 0, result.output
        (self.device_dir / "comics.s3db").write_bytes(b"comics database")

        result = self.invoke('mode', 'external')
        assert result.exit_code == 1
        assert 'files were not moved' in result.output

        for command in ('compute', 'store'):
            result = self.invoke('checksum', command, 'comics')
            assert result.exit_code == 1
            assert 'Database not found' in result.output

        result = self.invoke('checksum', 'verify', 'comics')
        assert result.exit_code == 2
