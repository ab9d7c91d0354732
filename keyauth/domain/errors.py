"""Error taxonomy for the key lifecycle.

Expected conditions (missing records, duplicates, protected records, bad
arguments) are reported through `OperationResult` values tagged with an
`ErrorKind`. Only infrastructure faults are raised as exceptions.
"""

import enum


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    PROTECTED_RECORD = "protected_record"
    INVALID_ARGUMENT = "invalid_argument"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class KeyAuthError(Exception):
    """Base exception for keyauth."""
    pass


class StorageUnavailableError(KeyAuthError):
    """Raised when the document store cannot be reached or rejects a request."""

    def __init__(self, operation: str, original_exception: Exception):
        self.operation = operation
        self.original_exception = original_exception
        super().__init__(f"Storage operation '{operation}' failed: {original_exception}")


class ConfigurationError(KeyAuthError):
    """Raised at startup when required settings are missing or invalid."""
    pass
