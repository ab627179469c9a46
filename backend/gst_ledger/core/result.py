"""
Tagged operation results
Project: GST Ledger

Ledger operations never raise across the facade for expected failures:
they return either `Result.ok(value)` or `Result.fail(kind, message)`.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from gst_ledger.core.exceptions import AppException, ErrorKind, exception_for_kind

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Either a success payload or an error kind with a message.

    Attributes:
        success: payload of a successful operation (None for void operations)
        error: kind of failure, None on success
        message: human-readable failure message
    """

    success: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(success=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=kind, message=message)

    @classmethod
    def from_exception(cls, exc: AppException) -> "Result[T]":
        return cls(error=exc.kind, message=exc.detail)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        """
        Return the payload, or raise the exception matching the error kind.

        Used by the HTTP layer, whose exception handlers produce the response.
        """
        if self.error is not None:
            raise exception_for_kind(self.error, self.message or self.error.value)
        return self.success
