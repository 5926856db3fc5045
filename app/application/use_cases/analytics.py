"""Analytics use case: workflow statistics, engine health, per-rule summaries."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.application.dtos.analytics import (
    HealthMetrics,
    RuleExecutionSummary,
    WorkflowHealth,
    WorkflowStatistics,
)
from app.domain.exceptions import ResourceNotFoundException
from app.shared.enums import ExecutionStatus
from app.shared.utils.datetime import window_start

if TYPE_CHECKING:
    from app.application.interfaces.repositories import (
        IWorkflowExecutionRepository,
        IWorkflowRuleRepository,
    )
    from app.domain.entities.workflow import WorkflowExecutionEntity


@dataclass(frozen=True)
class HealthThresholds:
    """Limits beyond which the engine reports degraded or unhealthy."""

    failed_last_hour_degraded: int = 5
    failed_last_hour_unhealthy: int = 10
    min_success_rate: float = 80.0
    max_pending_approvals: int = 20
    max_avg_execution_ms: int = 5000


def _average_time_ms(executions: Iterable[WorkflowExecutionEntity]) -> int:
    """Rounded mean of recorded execution times (executions without one are skipped)."""
    times = [e.execution_time_ms for e in executions if e.execution_time_ms]
    if not times:
        return 0
    return round(sum(times) / len(times))


def _count_status(executions: list[WorkflowExecutionEntity], *statuses: ExecutionStatus) -> int:
    return sum(1 for e in executions if e.status in statuses)


class WorkflowAnalyticsService:
    """Aggregates over the execution audit trail."""

    def __init__(
        self,
        rule_repo: IWorkflowRuleRepository,
        execution_repo: IWorkflowExecutionRepository,
        thresholds: HealthThresholds | None = None,
    ) -> None:
        self.rule_repo = rule_repo
        self.execution_repo = execution_repo
        self.thresholds = thresholds or HealthThresholds()

    async def get_statistics(self, days: int = 30) -> WorkflowStatistics:
        """Return rule counts and execution breakdowns for the last days."""
        executions = await self.execution_repo.list_executions_since(window_start(days=days))
        by_trigger = Counter(e.rule_trigger or "UNKNOWN" for e in executions)
        by_status = Counter(e.status.value for e in executions)
        return WorkflowStatistics(
            total_rules=await self.rule_repo.count_rules(),
            active_rules=await self.rule_repo.count_rules(is_active=True),
            total_executions=len(executions),
            successful_executions=_count_status(executions, ExecutionStatus.COMPLETED),
            failed_executions=_count_status(executions, ExecutionStatus.FAILED),
            pending_executions=_count_status(
                executions, ExecutionStatus.PENDING, ExecutionStatus.RUNNING
            ),
            average_execution_time_ms=_average_time_ms(executions),
            executions_by_trigger=dict(by_trigger),
            executions_by_status=dict(by_status),
        )

    async def get_health_metrics(self) -> WorkflowHealth:
        """Classify engine health from recent failures, success rate, backlog and latency."""
        limits = self.thresholds
        failed_last_hour = await self.execution_repo.count_by_status(
            [ExecutionStatus.FAILED], since=window_start(hours=1)
        )
        recent = await self.execution_repo.list_executions_since(window_start(hours=24))
        successful = _count_status(recent, ExecutionStatus.COMPLETED)
        success_rate = round(successful / len(recent) * 100, 2) if recent else 100.0
        pending_approvals = await self.execution_repo.count_by_status([ExecutionStatus.PENDING])
        avg_time = _average_time_ms(recent)

        status = "healthy"
        issues: list[str] = []
        if failed_last_hour > limits.failed_last_hour_unhealthy:
            status = "unhealthy"
            issues.append(f"High failure rate: {failed_last_hour} failures in the last hour")
        elif failed_last_hour > limits.failed_last_hour_degraded:
            status = "degraded"
            issues.append(f"Elevated failure rate: {failed_last_hour} failures in the last hour")
        if success_rate < limits.min_success_rate:
            issues.append(f"Low success rate: {success_rate:.1f}%")
        if pending_approvals > limits.max_pending_approvals:
            issues.append(f"High number of pending approvals: {pending_approvals}")
        if avg_time > limits.max_avg_execution_ms:
            issues.append(f"Slow execution times: {avg_time}ms average")
        if issues and status == "healthy":
            status = "degraded"

        return WorkflowHealth(
            status=status,
            metrics=HealthMetrics(
                failed_last_hour=failed_last_hour,
                success_rate=success_rate,
                pending_approvals=pending_approvals,
                avg_execution_time=avg_time,
            ),
            issues=issues,
        )

    async def get_rule_execution_summary(
        self, rule_id: str, days: int = 7
    ) -> RuleExecutionSummary:
        """Return one rule's execution counts, mean time and per-day histogram."""
        rule = await self.rule_repo.get_rule(rule_id)
        if rule is None:
            raise ResourceNotFoundException("workflow_rule", rule_id)
        executions = await self.execution_repo.list_executions_since(
            window_start(days=days), rule_id=rule_id
        )
        by_day = Counter(
            e.executed_at.date().isoformat() for e in executions if e.executed_at
        )
        return RuleExecutionSummary(
            rule_id=rule.id,
            rule_name=rule.name,
            total_executions=len(executions),
            successful_executions=_count_status(executions, ExecutionStatus.COMPLETED),
            failed_executions=_count_status(executions, ExecutionStatus.FAILED),
            average_execution_time_ms=_average_time_ms(executions),
            executions_by_day=dict(sorted(by_day.items())),
        )
