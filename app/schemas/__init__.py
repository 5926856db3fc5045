"""Pydantic request/response schemas for the API."""

from app.schemas.health import HealthResponse, ReadinessErrorResponse, ReadinessResponse
from app.schemas.workflow import (
    ApprovalRequest,
    BulkToggleRequest,
    BulkToggleResponse,
    CloneRuleRequest,
    ExecuteRuleRequest,
    ExecutionLogsResponse,
    ExecutionResultResponse,
    RuleExecutionSummaryResponse,
    WorkflowBuilderRequest,
    WorkflowExecutionListResponse,
    WorkflowExecutionResponse,
    WorkflowHealthResponse,
    WorkflowRuleCreateRequest,
    WorkflowRuleListResponse,
    WorkflowRuleResponse,
    WorkflowRuleUpdateRequest,
    WorkflowStatisticsResponse,
)

__all__ = [
    "ApprovalRequest",
    "BulkToggleRequest",
    "BulkToggleResponse",
    "CloneRuleRequest",
    "ExecuteRuleRequest",
    "ExecutionLogsResponse",
    "ExecutionResultResponse",
    "HealthResponse",
    "ReadinessErrorResponse",
    "ReadinessResponse",
    "RuleExecutionSummaryResponse",
    "WorkflowBuilderRequest",
    "WorkflowExecutionListResponse",
    "WorkflowExecutionResponse",
    "WorkflowHealthResponse",
    "WorkflowRuleCreateRequest",
    "WorkflowRuleListResponse",
    "WorkflowRuleResponse",
    "WorkflowRuleUpdateRequest",
    "WorkflowStatisticsResponse",
]
