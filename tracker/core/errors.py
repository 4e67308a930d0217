"""Error taxonomy and classification for task operations."""

from enum import Enum

from pydantic import BaseModel


class TaskValidationError(ValueError):
    """Input rejected before any mutation took place."""


class TaskTypeChangeError(TaskValidationError):
    """An update tried to change the type of an existing task."""


class TaskIdMismatchError(TaskValidationError):
    """The ID in an update payload does not match the task being updated."""


class TaskTypeMismatchError(TaskValidationError):
    """An operation was applied to a task of the wrong type."""


class DatabaseError(RuntimeError):
    """Unexpected storage failure."""


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Task errors
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_VALIDATION_FAILED = "ERR_VALIDATION_FAILED"
    ERR_TASK_TYPE_CHANGE = "ERR_TASK_TYPE_CHANGE"
    ERR_TASK_TYPE_MISMATCH = "ERR_TASK_TYPE_MISMATCH"

    # Storage errors
    ERR_STORAGE_FAILURE = "ERR_STORAGE_FAILURE"
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    retryable: bool = False


_NETWORK_PHRASES = ("connection", "timeout", "network", "unreachable", "502", "503", "504")


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while serving a request

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if isinstance(exception, TaskTypeChangeError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_TYPE_CHANGE,
            message="A task's type cannot be changed after it is created.",
            suggestion="Create a new task of the desired type instead.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, TaskTypeMismatchError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_TYPE_MISMATCH,
            message="This operation is not available for this kind of task.",
            suggestion="Progress values can only be recorded on progress tasks.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, KeyError) or "not found" in error_str:
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message="Task not found.",
            suggestion="Refresh your task list and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ValueError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION_FAILED,
            message="The request contained invalid data.",
            suggestion="Check the highlighted fields and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, DatabaseError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORAGE_FAILURE,
            message="Your changes could not be saved.",
            suggestion="Please try again. Reload the page to confirm the current state.",
            severity=ErrorSeverity.HIGH,
            retryable=True,
        )

    if exception_type in {"ConnectionError", "TimeoutError"} or any(
        phrase in error_str for phrase in _NETWORK_PHRASES
    ):
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK_ERROR,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
            retryable=True,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
        retryable=True,
    )
