"""Workflow API schemas.

Wire format is camelCase (ruleId, stopOnFailure, ...); models accept either
camelCase or snake_case on input and always serialize camelCase.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.application.dtos.analytics import (
    RuleExecutionSummary,
    WorkflowHealth,
    WorkflowStatistics,
)
from app.application.dtos.workflow import (
    BuilderEdge,
    BuilderNode,
    ExecutionLogs,
    WorkflowBuilderGraph,
    WorkflowExecutionResult,
    WorkflowRuleCreate,
    WorkflowRuleUpdate,
)
from app.domain.entities.workflow import WorkflowExecutionEntity, WorkflowRuleEntity
from app.domain.enums import WorkflowTrigger
from app.domain.exceptions import ValidationException


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Rule definitions ----


class WorkflowConditionSchema(CamelModel):
    """field/operator/value test. Omitting value is distinct from value: null."""

    field: str = Field(..., min_length=1, max_length=255)
    operator: str = Field(..., min_length=1, max_length=64)
    value: Any = None


class WorkflowActionSchema(CamelModel):
    """One step of the action chain; config shape depends on type."""

    type: str = Field(..., min_length=1, max_length=64)
    config: dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    stop_on_failure: bool = False


def _condition_dicts(conditions: list[WorkflowConditionSchema] | None) -> list[dict] | None:
    if conditions is None:
        return None
    return [c.model_dump(exclude_unset=True) for c in conditions]


def _action_dicts(actions: list[WorkflowActionSchema] | None) -> list[dict] | None:
    if actions is None:
        return None
    return [a.model_dump(by_alias=True) for a in actions]


class WorkflowRuleCreateRequest(CamelModel):
    """Request body for creating a rule."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    trigger: str = Field(..., min_length=1, max_length=64)
    conditions: list[WorkflowConditionSchema] = Field(default_factory=list)
    actions: list[WorkflowActionSchema]
    is_active: bool = True

    def to_dto(self) -> WorkflowRuleCreate:
        return WorkflowRuleCreate(
            name=self.name,
            description=self.description,
            trigger=self.trigger,
            conditions=_condition_dicts(self.conditions),
            actions=_action_dicts(self.actions) or [],
            is_active=self.is_active,
        )


class WorkflowRuleUpdateRequest(CamelModel):
    """Request body for a partial rule update."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    trigger: str | None = Field(default=None, min_length=1, max_length=64)
    conditions: list[WorkflowConditionSchema] | None = None
    actions: list[WorkflowActionSchema] | None = None
    is_active: bool | None = None

    def to_dto(self) -> WorkflowRuleUpdate:
        return WorkflowRuleUpdate(
            name=self.name,
            description=self.description,
            trigger=self.trigger,
            conditions=_condition_dicts(self.conditions),
            actions=_action_dicts(self.actions),
            is_active=self.is_active,
        )


class WorkflowImportRequest(CamelModel):
    """Exported rule snapshot. Extra keys such as exportedAt and version are ignored.

    name, trigger and actions are optional here so that their absence is
    reported by the import itself; wrongly typed values fail parsing.
    """

    name: str | None = None
    description: str | None = None
    trigger: str | None = None
    conditions: list[WorkflowConditionSchema] | None = None
    actions: list[WorkflowActionSchema] | None = None

    @classmethod
    def from_snapshot(cls, data: Any) -> "WorkflowImportRequest":
        """Parse data or raise ValidationException naming the first bad field."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or None
            raise ValidationException(
                f"Invalid workflow rule data: {field}: {error['msg']}"
                if field
                else f"Invalid workflow rule data: {error['msg']}",
                field=field,
            ) from None

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "trigger": self.trigger,
            "conditions": _condition_dicts(self.conditions),
            "actions": _action_dicts(self.actions),
        }


class WorkflowRuleResponse(CamelModel):
    """Rule as returned by the API."""

    id: str
    name: str
    description: str | None
    trigger: str
    conditions: list[dict[str, Any]]
    actions: list[dict[str, Any]]
    is_active: bool
    created_by: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_entity(cls, rule: WorkflowRuleEntity) -> "WorkflowRuleResponse":
        trigger = (
            rule.trigger.value if isinstance(rule.trigger, WorkflowTrigger) else rule.trigger
        )
        return cls(
            id=rule.id,
            name=rule.name,
            description=rule.description,
            trigger=trigger,
            conditions=rule.conditions_as_dicts(),
            actions=rule.actions_as_dicts(),
            is_active=rule.is_active,
            created_by=rule.created_by,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class WorkflowRuleListResponse(CamelModel):
    items: list[WorkflowRuleResponse]
    total: int
    page: int
    limit: int


class CloneRuleRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)


class BulkToggleRequest(CamelModel):
    rule_ids: list[str] = Field(..., min_length=1)
    is_active: bool


class BulkToggleResponse(CamelModel):
    updated: int


# ---- Visual builder ----


class BuilderNodeSchema(CamelModel):
    id: str
    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    position: dict[str, float] | None = None


class BuilderEdgeSchema(CamelModel):
    id: str
    source: str
    target: str
    label: str | None = None


class WorkflowBuilderRequest(CamelModel):
    """Visual-builder graph; the first trigger node supplies the rule's trigger."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    nodes: list[BuilderNodeSchema]
    edges: list[BuilderEdgeSchema] = Field(default_factory=list)

    def to_dto(self) -> WorkflowBuilderGraph:
        return WorkflowBuilderGraph(
            name=self.name,
            description=self.description,
            nodes=[BuilderNode(id=n.id, type=n.type, data=n.data, position=n.position) for n in self.nodes],
            edges=[BuilderEdge(id=e.id, source=e.source, target=e.target, label=e.label) for e in self.edges],
        )


# ---- Executions ----


class ExecuteRuleRequest(CamelModel):
    """Trigger payload (and optional caller metadata) for a manual run."""

    input: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] | None = None


class ExecutionResultResponse(CamelModel):
    """Outcome of a synchronous run or retry."""

    execution_id: str
    status: str
    output: dict[str, Any] | None = None
    error: str | None = None
    action_results: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: WorkflowExecutionResult) -> "ExecutionResultResponse":
        return cls(
            execution_id=result.execution_id,
            status=result.status.value,
            output=result.output,
            error=result.error,
            action_results=[r.to_dict() for r in result.action_results or []],
        )


class WorkflowExecutionResponse(CamelModel):
    """Stored execution record."""

    id: str
    rule_id: str
    rule_name: str | None = None
    rule_trigger: str | None = None
    status: str
    input: dict[str, Any]
    output: dict[str, Any] | None = None
    error: str | None = None
    executed_at: datetime | None = None
    execution_time_ms: int | None = None

    @classmethod
    def from_entity(cls, execution: WorkflowExecutionEntity) -> "WorkflowExecutionResponse":
        return cls(
            id=execution.id,
            rule_id=execution.rule_id,
            rule_name=execution.rule_name,
            rule_trigger=execution.rule_trigger,
            status=execution.status.value,
            input=execution.input,
            output=execution.output.to_dict() if execution.output else None,
            error=execution.error,
            executed_at=execution.executed_at,
            execution_time_ms=execution.execution_time_ms,
        )


class WorkflowExecutionListResponse(CamelModel):
    items: list[WorkflowExecutionResponse]
    total: int
    page: int
    limit: int


class ExecutionLogEntrySchema(CamelModel):
    timestamp: str
    level: str
    message: str
    data: dict[str, Any] | None = None


class ExecutionLogsResponse(CamelModel):
    execution: WorkflowExecutionResponse
    logs: list[ExecutionLogEntrySchema]

    @classmethod
    def from_logs(cls, logs: ExecutionLogs) -> "ExecutionLogsResponse":
        return cls(
            execution=WorkflowExecutionResponse.from_entity(logs.execution),
            logs=[
                ExecutionLogEntrySchema(
                    timestamp=entry.timestamp,
                    level=entry.level,
                    message=entry.message,
                    data=entry.data,
                )
                for entry in logs.logs
            ],
        )


class ApprovalRequest(CamelModel):
    approved: bool
    comment: str | None = Field(default=None, max_length=2000)


# ---- Analytics ----


class WorkflowStatisticsResponse(CamelModel):
    total_rules: int
    active_rules: int
    total_executions: int
    successful_executions: int
    failed_executions: int
    pending_executions: int
    average_execution_time_ms: int
    executions_by_trigger: dict[str, int]
    executions_by_status: dict[str, int]

    @classmethod
    def from_dto(cls, stats: WorkflowStatistics) -> "WorkflowStatisticsResponse":
        return cls(
            total_rules=stats.total_rules,
            active_rules=stats.active_rules,
            total_executions=stats.total_executions,
            successful_executions=stats.successful_executions,
            failed_executions=stats.failed_executions,
            pending_executions=stats.pending_executions,
            average_execution_time_ms=stats.average_execution_time_ms,
            executions_by_trigger=stats.executions_by_trigger,
            executions_by_status=stats.executions_by_status,
        )


class HealthMetricsSchema(CamelModel):
    failed_last_hour: int
    success_rate: float
    pending_approvals: int
    avg_execution_time: int


class WorkflowHealthResponse(CamelModel):
    status: str
    metrics: HealthMetricsSchema
    issues: list[str]

    @classmethod
    def from_dto(cls, health: WorkflowHealth) -> "WorkflowHealthResponse":
        m = health.metrics
        return cls(
            status=health.status,
            metrics=HealthMetricsSchema(
                failed_last_hour=m.failed_last_hour,
                success_rate=m.success_rate,
                pending_approvals=m.pending_approvals,
                avg_execution_time=m.avg_execution_time,
            ),
            issues=list(health.issues),
        )


class RuleExecutionSummaryResponse(CamelModel):
    rule_id: str
    rule_name: str
    total_executions: int
    successful_executions: int
    failed_executions: int
    average_execution_time_ms: int
    executions_by_day: dict[str, int]

    @classmethod
    def from_dto(cls, summary: RuleExecutionSummary) -> "RuleExecutionSummaryResponse":
        return cls(
            rule_id=summary.rule_id,
            rule_name=summary.rule_name,
            total_executions=summary.total_executions,
            successful_executions=summary.successful_executions,
            failed_executions=summary.failed_executions,
            average_execution_time_ms=summary.average_execution_time_ms,
            executions_by_day=summary.executions_by_day,
        )
