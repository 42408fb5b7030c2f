"""Error categories and exception hierarchy for the data layer."""
from typing import Any, Optional, Sequence
from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes exposed to the request layer."""

    # Validation errors (1xx)
    VALIDATION_ERROR = "VALIDATION_001"
    DUPLICATE_NAME = "VALIDATION_004"
    EMPTY_UPDATE = "VALIDATION_005"

    # Conflict errors (4xx)
    CONFLICT = "CONFLICT_001"

    # Internal errors (5xx)
    QUERY_FAILED = "INTERNAL_006"
    QUERY_TIMEOUT = "INTERNAL_008"
    SERVICE_UNAVAILABLE = "INTERNAL_007"


class ErrorCategory(Enum):
    """Error category for handling decisions."""

    TRANSIENT = "transient"  # caller may retry
    PERMANENT = "permanent"  # retrying the same call will fail again


class BaseServiceError(Exception):
    """Base exception for all data layer errors."""

    code: ErrorCode = ErrorCode.QUERY_FAILED

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        operation: str,
        entity_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ):
        """
        Initialize service error.

        Args:
            message: Error message
            category: Error category for handling
            operation: Operation being performed (e.g., "topics.list")
            entity_id: Optional topic/comment/tag ID for context
            details: Additional error details
            original_error: Original exception that caused this error
        """
        self.message = message
        self.category = category
        self.operation = operation
        self.entity_id = entity_id
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.category is ErrorCategory.TRANSIENT

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "category": self.category.value,
            "operation": self.operation,
            "entity_id": self.entity_id,
            "details": self.details,
        }


class TransientError(BaseServiceError):
    """Retry 가능한 일시적 오류."""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        super().__init__(message=message, category=ErrorCategory.TRANSIENT, operation=operation, **kwargs)


class PermanentError(BaseServiceError):
    """즉시 실패해야 하는 영구적 오류."""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        super().__init__(message=message, category=ErrorCategory.PERMANENT, operation=operation, **kwargs)


# Statement execution errors

def redact_params(params: Optional[Sequence[Any]]) -> list[str]:
    """
    Render a parameter list for diagnostics without leaking free text.

    Numbers, booleans and NULLs are shown as-is; every other value is reduced
    to its type and length so search terms, names and content never reach logs.
    """
    if params is None:
        return []
    if isinstance(params, dict):
        params = list(params.values())
    snapshot = []
    for value in params:
        if value is None or isinstance(value, (bool, int, float)):
            snapshot.append(repr(value))
        elif isinstance(value, (str, bytes)):
            snapshot.append(f"<{type(value).__name__} len={len(value)}>")
        else:
            snapshot.append(f"<{type(value).__name__}>")
    return snapshot


class _StatementErrorMixin:
    """Attach the failing statement text and a redacted parameter snapshot."""

    def _attach_statement(self, statement: Optional[str], params: Optional[Sequence[Any]]) -> None:
        self.statement = " ".join(statement.split()) if statement else None
        self.params = redact_params(params)
        self.details.setdefault("statement", self.statement)
        self.details.setdefault("params", self.params)


class QueryFailedError(_StatementErrorMixin, PermanentError):
    """A database statement failed; the surrounding operation is aborted."""

    code = ErrorCode.QUERY_FAILED

    def __init__(
        self,
        operation: str,
        statement: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
        message: str = "query failed",
        **kwargs: Any,
    ):
        super().__init__(message=message, operation=operation, **kwargs)
        self._attach_statement(statement, params)


class QueryTimeoutError(_StatementErrorMixin, TransientError):
    """A statement exceeded the configured query timeout."""

    code = ErrorCode.QUERY_TIMEOUT

    def __init__(
        self,
        operation: str,
        timeout: float,
        statement: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(message="query failed: timed out", operation=operation, **kwargs)
        self.timeout = timeout
        self.details["timeout"] = timeout
        self._attach_statement(statement, params)


class ConflictError(_StatementErrorMixin, TransientError):
    """A write collided with a unique key, usually a concurrent writer."""

    code = ErrorCode.CONFLICT

    def __init__(
        self,
        operation: str,
        statement: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(message="query failed: conflicting write", operation=operation, **kwargs)
        self._attach_statement(statement, params)


class StoreUnavailableError(_StatementErrorMixin, TransientError):
    """Connection, network or pool failure talking to the store."""

    code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(
        self,
        operation: str,
        statement: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(message="query failed: store unavailable", operation=operation, **kwargs)
        self._attach_statement(statement, params)


# Validation errors

class DuplicateNameError(PermanentError):
    """A tag or category with the same name already exists."""

    code = ErrorCode.DUPLICATE_NAME

    def __init__(self, kind: str, name: str, operation: str):
        super().__init__(
            message=f"{kind} name already exists",
            operation=operation,
            details={"kind": kind, "name_length": len(name)},
        )
        self.kind = kind
        self.name = name


class EmptyUpdateError(PermanentError):
    """An update call carried no fields to change."""

    code = ErrorCode.EMPTY_UPDATE

    def __init__(self, operation: str, entity_id: Optional[int] = None):
        super().__init__(message="no fields to update", operation=operation, entity_id=entity_id)


class InvalidNameError(PermanentError):
    """A tag or category name is blank after trimming."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, kind: str, operation: str):
        super().__init__(message=f"{kind} name must not be blank", operation=operation, details={"kind": kind})
        self.kind = kind
