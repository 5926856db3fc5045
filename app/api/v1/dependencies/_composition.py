"""Composition root: builds the workflow engine and services from infrastructure.

Shared by request dependencies (one engine per request session) and the
application lifespan (one engine per delivered trigger event and per rule).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.services import IEventBus, IJobQueue
from app.application.use_cases.analytics import HealthThresholds
from app.core.config import Settings
from app.infrastructure.persistence.database import get_session_factory
from app.infrastructure.persistence.repositories import (
    WorkflowExecutionRepository,
    WorkflowRuleRepository,
)
from app.infrastructure.services import (
    SqlEntityStatusWriter,
    WorkflowActionExecutor,
    WorkflowEngine,
)


def build_workflow_engine(
    db: AsyncSession, event_bus: IEventBus, job_queue: IJobQueue
) -> WorkflowEngine:
    """Engine on one session; each execution record write commits on its own."""
    return WorkflowEngine(
        WorkflowRuleRepository(db),
        WorkflowExecutionRepository(db, autocommit=True),
        event_bus,
        WorkflowActionExecutor(event_bus, job_queue, SqlEntityStatusWriter(db)),
    )


async def get_engine_session() -> AsyncIterator[AsyncSession]:
    """Session for engine work: rolled back on error, anything left committed on exit.

    Not wrapped in session.begin(): the execution repository commits its own
    writes as the execution moves through its states.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


@asynccontextmanager
async def session_engine_scope(
    event_bus: IEventBus, job_queue: IJobQueue
) -> AsyncIterator[WorkflowEngine]:
    """Yield an engine bound to a fresh session (see get_engine_session)."""
    async with asynccontextmanager(get_engine_session)() as session:
        yield build_workflow_engine(session, event_bus, job_queue)


def health_thresholds(settings: Settings) -> HealthThresholds:
    return HealthThresholds(
        failed_last_hour_degraded=settings.health_failed_last_hour_degraded,
        failed_last_hour_unhealthy=settings.health_failed_last_hour_unhealthy,
        min_success_rate=settings.health_min_success_rate,
        max_pending_approvals=settings.health_max_pending_approvals,
        max_avg_execution_ms=settings.health_max_avg_execution_ms,
    )
