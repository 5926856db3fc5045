"""DTOs for workflow analytics (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WorkflowStatistics:
    """Rule and execution counts over a trailing window of days."""

    total_rules: int
    active_rules: int
    total_executions: int
    successful_executions: int
    failed_executions: int
    pending_executions: int
    average_execution_time_ms: int
    executions_by_trigger: dict[str, int] = field(default_factory=dict)
    executions_by_status: dict[str, int] = field(default_factory=dict)


@dataclass
class HealthMetrics:
    failed_last_hour: int
    success_rate: float
    pending_approvals: int
    avg_execution_time: int


@dataclass
class WorkflowHealth:
    """Engine health: healthy, degraded or unhealthy, with the reasons."""

    status: str
    metrics: HealthMetrics
    issues: list[str] = field(default_factory=list)


@dataclass
class RuleExecutionSummary:
    """Per-rule execution summary over a trailing window of days."""

    rule_id: str
    rule_name: str
    total_executions: int
    successful_executions: int
    failed_executions: int
    average_execution_time_ms: int
    executions_by_day: dict[str, int] = field(default_factory=dict)
