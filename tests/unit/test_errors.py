"""Unit tests for error classification utilities."""

import pytest

from tracker.core.errors import (
    DatabaseError,
    ErrorCode,
    ErrorSeverity,
    TaskIdMismatchError,
    TaskTypeChangeError,
    TaskTypeMismatchError,
    TaskValidationError,
    classify_error_with_response,
)


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    """Tests for classify_error_with_response."""

    def test_type_change(self):
        response = classify_error_with_response(TaskTypeChangeError("Cannot change task"))

        assert response.code == ErrorCode.ERR_TASK_TYPE_CHANGE
        assert response.retryable is False

    def test_type_mismatch(self):
        response = classify_error_with_response(TaskTypeMismatchError("not a progress task"))
        assert response.code == ErrorCode.ERR_TASK_TYPE_MISMATCH

    def test_not_found(self):
        response = classify_error_with_response(KeyError("Record not found in tasks: abc"))

        assert response.code == ErrorCode.ERR_TASK_NOT_FOUND
        assert response.severity == ErrorSeverity.LOW

    def test_validation(self):
        response = classify_error_with_response(ValueError("Title must not be empty"))
        assert response.code == ErrorCode.ERR_VALIDATION_FAILED

    def test_storage_failure_is_retryable(self):
        response = classify_error_with_response(DatabaseError("Failed to update where in tasks: disk I/O error"))

        assert response.code == ErrorCode.ERR_STORAGE_FAILURE
        assert response.severity == ErrorSeverity.HIGH
        assert response.retryable is True

    def test_network_error(self):
        response = classify_error_with_response(ConnectionError("Connection refused"))

        assert response.code == ErrorCode.ERR_NETWORK_ERROR
        assert response.retryable is True

    def test_unknown(self):
        response = classify_error_with_response(Exception("Something odd happened"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert "unexpected" in response.message.lower()


@pytest.mark.unit
class TestErrorHierarchy:
    """Domain errors are validation failures."""

    @pytest.mark.parametrize("error_cls", [TaskTypeChangeError, TaskTypeMismatchError, TaskIdMismatchError])
    def test_subclasses_are_validation_errors(self, error_cls):
        assert issubclass(error_cls, TaskValidationError)
        assert issubclass(error_cls, ValueError)

    def test_database_error_is_runtime_error(self):
        assert issubclass(DatabaseError, RuntimeError)
