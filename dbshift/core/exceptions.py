"""Exception hierarchy for dbshift."""

from typing import Optional

from .models import Severity


class DatabaseError(Exception):
    """Base exception for database lifecycle failures.

    The message is prefixed with the severity tag so that callers that
    only log the error still see whether it was fatal.
    """

    default_message = "Database error"

    def __init__(self, message: Optional[str] = None,
                 cause: Optional[BaseException] = None,
                 severity: Severity = Severity.FATAL):
        self.message = message or self.default_message
        self.cause = cause
        self.severity = Severity(severity)
        super().__init__(f"[{self.severity.tag}] {self.message}")
        if cause is not None:
            self.__cause__ = cause

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL


class InitializationError(DatabaseError):
    """Raised when an update manager fails to initialize."""
    default_message = "Error initializing update manager"


class CreationError(DatabaseError):
    """Raised when the initial database could not be created."""
    default_message = "Error creating initial database"


class UpgradeError(DatabaseError):
    """Raised when a database could not be upgraded between versions."""

    def __init__(self, old_version: int, new_version: int,
                 cause: Optional[BaseException] = None,
                 severity: Severity = Severity.FATAL):
        self.old_version = old_version
        self.new_version = new_version
        super().__init__(
            f"Error upgrading database from version {old_version} "
            f"to version {new_version}",
            cause, severity
        )


class EngineError(DatabaseError):
    """Raised when the database engine cannot open or read a file."""
    default_message = "Database engine error"


class StorageError(Exception):
    """Base exception for storage location operations."""
    pass


class TransferError(StorageError):
    """Raised when database files could not be moved between locations.

    Callers cannot tell which subset of files moved; the source location
    is still authoritative until a retry succeeds.
    """

    def __init__(self, cause: Optional[BaseException] = None):
        message = "Error transferring database files"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class SettingsError(StorageError):
    """Raised when the persistent settings store cannot be read or written."""
    pass
