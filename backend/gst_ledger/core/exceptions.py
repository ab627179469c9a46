"""
Custom exceptions for the application.
Project: GST Ledger

Domain exceptions for centralised error handling. Every ledger failure
belongs to one ErrorKind; the ledger facade turns exceptions into tagged
results and the HTTP layer turns them into responses.

NOTE: BusinessValidationError is deliberately distinct from pydantic.ValidationError.
- pydantic.ValidationError: malformed input caught by the schemas (FastAPI -> 422)
- BusinessValidationError: business-rule violations raised by the services
"""

from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "ErrorKind",
    "AppException",
    "NotFoundError",
    "BusinessValidationError",
    "ValidationError",       # alias of BusinessValidationError
    "LockedDocumentError",
    "LockedPeriodError",
    "OverAllocationError",
    "InvalidTransitionError",
    "ConcurrencyConflictError",
    "PersistenceError",
    "AuthorizationError",
    "BUSINESS_ERRORS",
    "INFRASTRUCTURE_ERRORS",
    "exception_for_kind",
]


class ErrorKind(str, Enum):
    """Error taxonomy exposed to ledger callers."""
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    LOCKED_DOCUMENT = "locked_document"
    LOCKED_PERIOD = "locked_period"
    OVER_ALLOCATION = "over_allocation"
    INVALID_TRANSITION = "invalid_transition"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    PERSISTENCE = "persistence_error"
    FORBIDDEN = "forbidden"


class AppException(Exception):
    """
    Base exception for the application.

    All custom exceptions inherit from this class.

    Attributes:
        status_code: HTTP status code returned to the client
        error_code: Stable identifier for the frontend
        kind: ErrorKind of the failure
        detail: Human-readable message
        extra: Additional data for the frontend
    """

    # Default values - overridden in subclasses
    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    kind: ErrorKind = ErrorKind.PERSISTENCE

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialise the exception.

        Args:
            detail: Detailed error message
            error_code: Stable identifier (default: the class one)
            extra: Additional data for the frontend (default: None)
        """
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


class NotFoundError(AppException):
    """
    Raised when a resource does not exist.

    A row owned by another team is reported exactly like a missing row.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        detail: str = "Resource not found",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Raised for business-rule violations.

    Inherits from ValueError so it can also be raised from pydantic validators.

    Examples:
        - "Amount cannot be zero"
        - "Advance has allocations"
        - "Period overlaps an existing GST period lock"
    """

    status_code: int = 400
    error_code: str = "BUSINESS_VALIDATION_ERROR"
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        detail: str = "Validation failed",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Call AppException.__init__ directly to skip ValueError
        AppException.__init__(self, detail, error_code, extra)


# Compatibility alias
ValidationError = BusinessValidationError


class LockedDocumentError(AppException):
    """
    Raised when a mutation targets a frozen document.

    Used for edits of non-draft documents and for any balance change on a
    cancelled document.
    """

    status_code: int = 409
    error_code: str = "DOCUMENT_LOCKED"
    kind: ErrorKind = ErrorKind.LOCKED_DOCUMENT

    def __init__(
        self,
        detail: str = "Document is locked",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class LockedPeriodError(LockedDocumentError):
    """Raised when the document date falls inside a filed GST period."""

    status_code: int = 409
    error_code: str = "PERIOD_LOCKED"
    kind: ErrorKind = ErrorKind.LOCKED_PERIOD

    def __init__(
        self,
        detail: str = "Document falls inside a filed GST period",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class OverAllocationError(AppException):
    """
    Raised when money would exceed what is available or owed.

    Examples:
        - allocations summing to more than the advance remainder
        - a payment or allocation larger than the document amount due
    """

    status_code: int = 400
    error_code: str = "OVER_ALLOCATION"
    kind: ErrorKind = ErrorKind.OVER_ALLOCATION

    def __init__(
        self,
        detail: str = "Amount exceeds the available balance",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class InvalidTransitionError(AppException):
    """Raised for a status change the state machine does not allow."""

    status_code: int = 409
    error_code: str = "INVALID_TRANSITION"
    kind: ErrorKind = ErrorKind.INVALID_TRANSITION

    def __init__(
        self,
        detail: str = "Status transition not allowed",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class ConcurrencyConflictError(AppException):
    """
    Raised when the transaction lost a serialization race.

    Nothing was written; the caller may retry.
    """

    status_code: int = 409
    error_code: str = "CONCURRENCY_CONFLICT"
    kind: ErrorKind = ErrorKind.CONCURRENCY_CONFLICT

    def __init__(
        self,
        detail: str = "The operation conflicted with a concurrent change, please retry",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class PersistenceError(AppException):
    """
    Raised for infrastructure failures (connection loss, timeouts).

    Nothing was written; the caller may retry.
    """

    status_code: int = 500
    error_code: str = "PERSISTENCE_ERROR"
    kind: ErrorKind = ErrorKind.PERSISTENCE

    def __init__(
        self,
        detail: str = "The operation could not be completed, please retry",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AuthorizationError(AppException):
    """
    Raised when the caller identity is missing or not allowed.

    Examples:
        - "Identity token has no team_id claim"
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"
    kind: ErrorKind = ErrorKind.FORBIDDEN

    def __init__(
        self,
        detail: str = "Access denied",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


# Caught locally and reported as typed results
BUSINESS_ERRORS = (
    BusinessValidationError,
    NotFoundError,
    LockedDocumentError,
    OverAllocationError,
    InvalidTransitionError,
    AuthorizationError,
)

# Logged with context, surfaced as retry-safe failures
INFRASTRUCTURE_ERRORS = (
    ConcurrencyConflictError,
    PersistenceError,
)

_KIND_TO_EXCEPTION: Dict[ErrorKind, type] = {
    ErrorKind.VALIDATION: BusinessValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.LOCKED_DOCUMENT: LockedDocumentError,
    ErrorKind.LOCKED_PERIOD: LockedPeriodError,
    ErrorKind.OVER_ALLOCATION: OverAllocationError,
    ErrorKind.INVALID_TRANSITION: InvalidTransitionError,
    ErrorKind.CONCURRENCY_CONFLICT: ConcurrencyConflictError,
    ErrorKind.PERSISTENCE: PersistenceError,
    ErrorKind.FORBIDDEN: AuthorizationError,
}


def exception_for_kind(kind: ErrorKind, message: str) -> AppException:
    """Rebuild the exception matching an error kind (used by the HTTP layer)."""
    return _KIND_TO_EXCEPTION[kind](message)
