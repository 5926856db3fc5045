"""Tests for WorkflowAnalyticsService (statistics, health classification, rule summary)."""

from datetime import timedelta

import pytest

from app.application.use_cases.analytics import HealthThresholds, WorkflowAnalyticsService
from app.domain.entities.workflow import ExecutionOutput, WorkflowExecutionEntity
from app.domain.enums import WorkflowTrigger
from app.domain.exceptions import ResourceNotFoundException
from app.shared.enums import ExecutionStatus
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

EMAIL = {"type": "SEND_EMAIL", "config": {"to": "x@y.com"}}


def _add(
    execution_repo,
    rule_id: str,
    status: ExecutionStatus,
    *,
    ms: int | None = 100,
    age: timedelta = timedelta(minutes=5),
) -> None:
    execution_repo.add(
        WorkflowExecutionEntity(
            id=generate_cuid(),
            rule_id=rule_id,
            status=status,
            input={},
            output=ExecutionOutput(execution_time_ms=ms) if ms is not None else None,
            executed_at=utc_now() - age,
        )
    )


async def test_statistics_counts(analytics_service, make_rule, execution_repo) -> None:
    applied = await make_rule([EMAIL])
    offer = await make_rule([EMAIL], trigger=WorkflowTrigger.OFFER_SENT, is_active=False)
    _add(execution_repo, applied.id, ExecutionStatus.COMPLETED, ms=100)
    _add(execution_repo, applied.id, ExecutionStatus.COMPLETED, ms=200)
    _add(execution_repo, applied.id, ExecutionStatus.FAILED, ms=None)
    _add(execution_repo, offer.id, ExecutionStatus.PENDING, ms=None)
    _add(execution_repo, offer.id, ExecutionStatus.RUNNING, ms=None)
    _add(execution_repo, offer.id, ExecutionStatus.COMPLETED, age=timedelta(days=40))

    stats = await analytics_service.get_statistics(days=30)

    assert stats.total_rules == 2
    assert stats.active_rules == 1
    assert stats.total_executions == 5
    assert stats.successful_executions == 2
    assert stats.failed_executions == 1
    assert stats.pending_executions == 2
    assert stats.average_execution_time_ms == 150
    assert stats.executions_by_trigger == {"APPLICATION_RECEIVED": 3, "OFFER_SENT": 2}
    assert stats.executions_by_status == {"COMPLETED": 2, "FAILED": 1, "PENDING": 1, "RUNNING": 1}


async def test_health_with_no_executions(analytics_service) -> None:
    health = await analytics_service.get_health_metrics()
    assert health.status == "healthy"
    assert health.issues == []
    assert health.metrics.success_rate == 100.0
    assert health.metrics.avg_execution_time == 0


async def test_health_unhealthy_on_failure_burst(analytics_service, make_rule, execution_repo) -> None:
    rule = await make_rule([EMAIL])
    for _ in range(11):
        _add(execution_repo, rule.id, ExecutionStatus.FAILED)

    health = await analytics_service.get_health_metrics()

    assert health.status == "unhealthy"
    assert health.metrics.failed_last_hour == 11
    assert health.metrics.success_rate == 0.0
    assert health.issues == [
        "High failure rate: 11 failures in the last hour",
        "Low success rate: 0.0%",
    ]


async def test_health_degraded_on_elevated_failures(
    analytics_service, make_rule, execution_repo
) -> None:
    rule = await make_rule([EMAIL])
    for _ in range(6):
        _add(execution_repo, rule.id, ExecutionStatus.FAILED)
    for _ in range(30):
        _add(execution_repo, rule.id, ExecutionStatus.COMPLETED)

    health = await analytics_service.get_health_metrics()

    assert health.status == "degraded"
    assert health.issues == ["Elevated failure rate: 6 failures in the last hour"]
    assert health.metrics.success_rate == pytest.approx(83.33)


async def test_health_old_failures_do_not_count_as_recent(
    analytics_service, make_rule, execution_repo
) -> None:
    rule = await make_rule([EMAIL])
    for _ in range(12):
        _add(execution_repo, rule.id, ExecutionStatus.FAILED, age=timedelta(hours=2))
    for _ in range(60):
        _add(execution_repo, rule.id, ExecutionStatus.COMPLETED)

    health = await analytics_service.get_health_metrics()

    assert health.metrics.failed_last_hour == 0
    assert health.status == "healthy"


async def test_health_degraded_on_backlog_and_latency(rule_repo, execution_repo, make_rule) -> None:
    service = WorkflowAnalyticsService(
        rule_repo,
        execution_repo,
        HealthThresholds(max_pending_approvals=1, max_avg_execution_ms=50),
    )
    rule = await make_rule([EMAIL])
    _add(execution_repo, rule.id, ExecutionStatus.COMPLETED, ms=80)
    _add(execution_repo, rule.id, ExecutionStatus.PENDING, ms=None, age=timedelta(days=3))
    _add(execution_repo, rule.id, ExecutionStatus.PENDING, ms=None, age=timedelta(days=3))

    health = await service.get_health_metrics()

    assert health.status == "degraded"
    assert health.metrics.pending_approvals == 2
    assert health.issues == [
        "High number of pending approvals: 2",
        "Slow execution times: 80ms average",
    ]


async def test_rule_execution_summary(analytics_service, make_rule, execution_repo) -> None:
    rule = await make_rule([EMAIL], name="Summarized")
    other = await make_rule([EMAIL], name="Other")
    _add(execution_repo, rule.id, ExecutionStatus.COMPLETED, ms=10, age=timedelta(days=1))
    _add(execution_repo, rule.id, ExecutionStatus.FAILED, ms=30, age=timedelta(days=1))
    _add(execution_repo, rule.id, ExecutionStatus.COMPLETED, ms=20)
    _add(execution_repo, rule.id, ExecutionStatus.COMPLETED, age=timedelta(days=9))
    _add(execution_repo, other.id, ExecutionStatus.COMPLETED)

    summary = await analytics_service.get_rule_execution_summary(rule.id, days=7)

    assert summary.rule_name == "Summarized"
    assert summary.total_executions == 3
    assert summary.successful_executions == 2
    assert summary.failed_executions == 1
    assert summary.average_execution_time_ms == 20
    assert sum(summary.executions_by_day.values()) == 3
    assert list(summary.executions_by_day) == sorted(summary.executions_by_day)


async def test_rule_execution_summary_unknown_rule(analytics_service) -> None:
    with pytest.raises(ResourceNotFoundException):
        await analytics_service.get_rule_execution_summary("missing")
