"""Tests for the error taxonomy."""

from dbshift.core.exceptions import (
    DatabaseError, CreationError, UpgradeError, InitializationError,
    StorageError, TransferError
)
from dbshift.core.models import Severity


def test_severity_tag_in_message():
    error = CreationError()
    assert str(error) == "[E_FATAL] Error creating initial database"
    assert error.is_fatal


def test_warning_severity():
    error = InitializationError("Update server unreachable", severity=Severity.WARNING)
    assert str(error) == "[E_WARNING] Update server unreachable"
    assert not error.is_fatal
    assert isinstance(error, DatabaseError)


def test_upgrade_error_versions():
    cause = ValueError("bad column")
    error = UpgradeError(2, 5, cause)

    assert error.old_version == 2
    assert error.new_version == 5
    assert "from version 2 to version 5" in str(error)
    assert error.__cause__ is cause


def test_transfer_error_wraps_cause():
    cause = OSError("read-only file system")
    error = TransferError(cause)

    assert isinstance(error, StorageError)
    assert error.cause is cause
    assert error.__cause__ is cause
    assert "read-only file system" in str(error)
