"""DTOs for workflow rule and execution use cases (no dependency on ORM or presentation schemas).

Rule definitions arrive as raw camelCase maps (conditions/actions) so the
rule validator can reject unknown action types and operators with a domain
error before anything is parsed into entities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.shared.enums import ExecutionStatus

if TYPE_CHECKING:
    from app.domain.entities.workflow import ActionResult, WorkflowExecutionEntity


@dataclass(frozen=True)
class WorkflowRuleCreate:
    """Input for creating a rule (explicit create, import, clone or builder)."""

    name: str
    trigger: str
    actions: list[dict[str, Any]]
    conditions: list[dict[str, Any]] | None = None
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class WorkflowRuleUpdate:
    """Partial update; None means "not supplied". An empty conditions list clears conditions."""

    name: str | None = None
    description: str | None = None
    trigger: str | None = None
    conditions: list[dict[str, Any]] | None = None
    actions: list[dict[str, Any]] | None = None
    is_active: bool | None = None


@dataclass(frozen=True)
class WorkflowRuleFilter:
    """Rule list filters (all optional) and 1-based pagination."""

    trigger: str | None = None
    is_active: bool | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ExecutionFilter:
    """Execution list filters (all optional) and 1-based pagination."""

    rule_id: str | None = None
    status: ExecutionStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page[T]:
    """One page of results plus the unpaginated total."""

    items: list[T]
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class WorkflowExecutionResult:
    """Synchronous result of executing (or retrying) a rule."""

    execution_id: str
    status: ExecutionStatus
    output: dict[str, Any] | None = None
    error: str | None = None
    action_results: list[ActionResult] | None = None


@dataclass(frozen=True)
class BuilderNode:
    """Visual-builder node; data carries trigger/field/operator/value/actionType/config."""

    id: str
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    position: dict[str, float] | None = None


@dataclass(frozen=True)
class BuilderEdge:
    """Visual-builder edge. Kept for round-tripping; never used for ordering."""

    id: str
    source: str
    target: str
    label: str | None = None


@dataclass(frozen=True)
class WorkflowBuilderGraph:
    """Visual-builder graph submitted to create a rule."""

    name: str
    nodes: list[BuilderNode]
    edges: list[BuilderEdge] = field(default_factory=list)
    description: str | None = None


@dataclass(frozen=True)
class ExecutionLogEntry:
    """One synthesized log line for an execution."""

    timestamp: str
    level: str
    message: str
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class ExecutionLogs:
    """An execution and its synthesized log lines."""

    execution: WorkflowExecutionEntity
    logs: list[ExecutionLogEntry]


@dataclass(frozen=True)
class ActionContext:
    """What one action sees: the trigger payload, caller metadata and its execution."""

    input: dict[str, Any]
    metadata: dict[str, Any] | None = None
    execution_id: str | None = None
    rule_id: str | None = None
