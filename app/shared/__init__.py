"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.enums import (
    ExecutionStatus,
    JobName,
    QueueName,
    SystemEventType,
    WorkflowEventTopic,
)
from app.shared.utils import (
    MISSING,
    ensure_utc,
    generate_cuid,
    get_nested_value,
    utc_now,
)

__all__ = [
    "ExecutionStatus",
    "JobName",
    "QueueName",
    "SystemEventType",
    "WorkflowEventTopic",
    "MISSING",
    "generate_cuid",
    "get_nested_value",
    "utc_now",
    "ensure_utc",
]
