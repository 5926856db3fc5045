"""Domain exceptions for the hireflow application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class HireflowException(Exception):
    """Base exception for all hireflow application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an error response body."""
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationException(HireflowException):
    """Raised when a rule definition or request input is invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(HireflowException):
    """Raised when a requested rule or execution is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow_rule').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class InvalidStateException(HireflowException):
    """Raised when an execution is not in a state that allows the operation.

    No state change is made when this is raised.
    """

    def __init__(
        self,
        message: str,
        execution_id: str,
        current_status: str,
        allowed_statuses: list[str],
    ) -> None:
        super().__init__(
            message,
            "INVALID_STATE",
            {
                "execution_id": execution_id,
                "current_status": current_status,
                "allowed_statuses": allowed_statuses,
            },
        )


class ActionExecutionException(HireflowException):
    """Raised when a stopOnFailure action fails and aborts its chain."""

    def __init__(self, action_type: str, reason: str) -> None:
        super().__init__(
            f"Action {action_type} failed: {reason}",
            "ACTION_FAILED",
            {"action_type": action_type, "reason": reason},
        )


class SqlNotConfiguredException(HireflowException):
    """Raised when an operation requires the database but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
