"""Infrastructure exceptions for messaging and external operations.

Messaging errors extend HireflowException so presentation can map them
to HTTP responses consistently, and the engine can record them as action
failures.
"""

from app.domain.exceptions import HireflowException


class MessagingException(HireflowException):
    """Base exception for event bus and job queue operations."""


class JobQueueUnavailableError(MessagingException):
    """Job could not be enqueued (queue backend not connected or rejected the push)."""

    def __init__(self, queue_name: str, reason: str) -> None:
        super().__init__(
            f"Job queue '{queue_name}' unavailable: {reason}",
            "QUEUE_UNAVAILABLE",
            {"queue_name": queue_name, "reason": reason},
        )


class UnsupportedEntityTypeError(HireflowException):
    """UPDATE_STATUS named an entity type that has no status column mapping."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(
            f"Unsupported entity type for status update: {entity_type}",
            "VALIDATION_ERROR",
            {"entity_type": entity_type},
        )
