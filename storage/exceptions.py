"""Exceptions for the dashboard storage layer."""

from typing import Optional


class StorageError(Exception):
    """Base class for storage errors."""

    pass


class ValidationError(StorageError):
    """Raised when a manual entry breaks a business rule.

    Only the offending save is rejected; stored data is left untouched.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class StorageCorruptionError(StorageError):
    """Raised when a persisted JSON value cannot be decoded.

    Readers recover from this locally by substituting an empty collection.
    """

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt value for {key}: {reason}")


class BackupFormatError(StorageError):
    """Raised when an imported backup document is not usable."""

    pass
