"""Workflow rule service, engine and analytics dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.services import IEventBus, IJobQueue
from app.application.use_cases.analytics import WorkflowAnalyticsService
from app.application.use_cases.workflows import WorkflowRuleService
from app.core.config import get_settings
from app.infrastructure.persistence.repositories import (
    WorkflowExecutionRepository,
    WorkflowRuleRepository,
)
from app.infrastructure.services import WorkflowEngine

from ._composition import build_workflow_engine, get_engine_session, health_thresholds
from .db import get_execution_repo, get_rule_repo, get_rule_repo_for_write
from .messaging import get_event_bus, get_job_queue


async def get_workflow_rule_service(
    rule_repo: Annotated[WorkflowRuleRepository, Depends(get_rule_repo)],
    event_bus: Annotated[IEventBus, Depends(get_event_bus)],
) -> WorkflowRuleService:
    """Rule service for read routes (get, list, export, catalogs)."""
    return WorkflowRuleService(rule_repo, event_bus)


async def get_workflow_rule_service_for_write(
    rule_repo: Annotated[WorkflowRuleRepository, Depends(get_rule_repo_for_write)],
    event_bus: Annotated[IEventBus, Depends(get_event_bus)],
) -> WorkflowRuleService:
    """Rule service for create/update/delete/toggle/clone/import (transactional)."""
    return WorkflowRuleService(rule_repo, event_bus)


async def get_workflow_engine(
    db: Annotated[AsyncSession, Depends(get_engine_session)],
    event_bus: Annotated[IEventBus, Depends(get_event_bus)],
    job_queue: Annotated[IJobQueue, Depends(get_job_queue)],
) -> WorkflowEngine:
    """Engine on the request session; execution records commit as their status changes."""
    return build_workflow_engine(db, event_bus, job_queue)


async def get_workflow_analytics_service(
    rule_repo: Annotated[WorkflowRuleRepository, Depends(get_rule_repo)],
    execution_repo: Annotated[WorkflowExecutionRepository, Depends(get_execution_repo)],
) -> WorkflowAnalyticsService:
    return WorkflowAnalyticsService(
        rule_repo, execution_repo, health_thresholds(get_settings())
    )
