"""
Custom exceptions for the pending note reminder service.
Provides meaningful error types for different failure scenarios.
"""
from typing import Any, Optional


class ReminderException(Exception):
    """Base exception for all reminder service errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class DatabaseError(ReminderException):
    """
    Raised when database operations fail.

    The message is the underlying driver message so that callers
    surfacing a failed run report what actually went wrong.
    """

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[str] = None
    ):
        details = {}
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation
        if original_error:
            details["original_error"] = original_error

        super().__init__(message, details, status_code=500)


class DataIntegrityError(ReminderException):
    """
    Raised when a record read from the store has an unusable shape.

    Examples: a payment amount that is not numeric, a competency key
    that is not YYYY-MM, a joined doctor record that is missing or
    ambiguous (more than one element).
    """

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None
    ):
        details = {}
        if entity:
            details["entity"] = entity
        if entity_id:
            details["entity_id"] = entity_id
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:50]

        super().__init__(message, details, status_code=422)


class ConfigurationError(ReminderException):
    """Raised when required configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        config_key: str,
        expected_type: Optional[str] = None,
        actual_value: Optional[str] = None
    ):
        details = {
            "config_key": config_key
        }
        if expected_type:
            details["expected_type"] = expected_type
        if actual_value is not None:
            actual_value = str(actual_value)
            details["actual_value"] = actual_value[:50] if len(actual_value) > 50 else actual_value

        super().__init__(message, details, status_code=500)


class SchedulerJobError(ReminderException):
    """Raised when a scheduler job fails."""

    def __init__(
        self,
        message: str,
        job_id: str,
        failure_count: int,
        threshold: int = 2,
        last_error: Optional[str] = None
    ):
        details = {
            "job_id": job_id,
            "failure_count": failure_count,
            "threshold_exceeded": failure_count >= threshold
        }
        if last_error:
            details["last_error"] = last_error

        super().__init__(message, details, status_code=500)
