"""Result value returned by every lifecycle store operation."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from keyauth.domain.errors import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a lifecycle operation.

    Expected failures (missing record, duplicate name, protected record) are
    carried here instead of being raised, together with the message shown to
    the caller.
    """
    success: bool
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "OperationResult[T]":
        return cls(success=False, error=error, message=message)
