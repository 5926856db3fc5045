"""Application DTOs (no ORM dependency)."""

from app.application.dtos.analytics import (
    HealthMetrics,
    RuleExecutionSummary,
    WorkflowHealth,
    WorkflowStatistics,
)
from app.application.dtos.messaging import EventMessage
from app.application.dtos.workflow import (
    ActionContext,
    BuilderEdge,
    BuilderNode,
    ExecutionFilter,
    ExecutionLogEntry,
    ExecutionLogs,
    Page,
    WorkflowBuilderGraph,
    WorkflowExecutionResult,
    WorkflowRuleCreate,
    WorkflowRuleFilter,
    WorkflowRuleUpdate,
)

__all__ = [
    "ActionContext",
    "BuilderEdge",
    "BuilderNode",
    "ExecutionFilter",
    "ExecutionLogEntry",
    "EventMessage",
    "ExecutionLogs",
    "HealthMetrics",
    "Page",
    "RuleExecutionSummary",
    "WorkflowBuilderGraph",
    "WorkflowExecutionResult",
    "WorkflowHealth",
    "WorkflowRuleCreate",
    "WorkflowRuleFilter",
    "WorkflowRuleUpdate",
    "WorkflowStatistics",
]
