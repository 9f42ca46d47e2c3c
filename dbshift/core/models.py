"""Core data models and type definitions for dbshift."""

from dataclasses import dataclass
from enum import Enum, IntEnum


# Type aliases for better readability
DatabaseName = str
Checksum = str

DATABASE_EXTENSION = ".s3db"
CHECKSUM_EXTENSION = ".csm"
CHECKSUM_LENGTH = 32


class StorageMode(IntEnum):
    """Physical location that is authoritative for database files."""
    DEVICE = 0
    EXTERNAL = 1

    @classmethod
    def from_name(cls, name: str) -> 'StorageMode':
        """Look up a mode by case-insensitive name."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown storage mode: {name}") from None


class StorageState(IntEnum):
    """Current state of access to the database files."""
    READWRITE = 0
    READONLY = 1
    UNAVAILABLE = 2


class Severity(IntEnum):
    """Severity tag for database lifecycle errors."""
    FATAL = 1
    WARNING = 2

    @property
    def tag(self) -> str:
        return f"E_{self.name}"


class IntegrityResult(Enum):
    """Outcome of comparing a stored checksum with a computed one."""
    VERIFIED = "verified"
    MISMATCHED = "mismatched"
    UNAVAILABLE = "unavailable"


class UpdateState(Enum):
    """Lifecycle of a database as seen by the update orchestrator."""
    UNINITIALIZED = "uninitialized"
    CREATED = "created"
    UP_TO_DATE = "up_to_date"


@dataclass(frozen=True)
class TransferRecord:
    """Outcome of the last move between storage locations.

    When ``last_transfer_succeeded`` is false the files of
    ``previous_mode`` remain the source of truth until a retry succeeds.
    """
    current_mode: StorageMode = StorageMode.DEVICE
    previous_mode: StorageMode = StorageMode.DEVICE
    last_transfer_succeeded: bool = True

    @property
    def pending(self) -> bool:
        """True if a retry has something to move."""
        return (not self.last_transfer_succeeded
                and self.previous_mode != self.current_mode)
