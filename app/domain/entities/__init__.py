"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.workflow import (
    ACTION_CONFIG_TYPES,
    ActionConfig,
    ActionResult,
    ApprovalDecision,
    ExecutionOutput,
    PendingApproval,
    WorkflowAction,
    WorkflowCondition,
    WorkflowExecutionEntity,
    WorkflowRuleEntity,
)

__all__ = [
    "ACTION_CONFIG_TYPES",
    "ActionConfig",
    "ActionResult",
    "ApprovalDecision",
    "ExecutionOutput",
    "PendingApproval",
    "WorkflowAction",
    "WorkflowCondition",
    "WorkflowExecutionEntity",
    "WorkflowRuleEntity",
]
