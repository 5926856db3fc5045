"""Presentation-layer dependency injection.

Routes depend only on these providers, never on infrastructure directly.
Tests replace them through app.dependency_overrides.
"""

from app.api.v1.dependencies._composition import (
    build_workflow_engine,
    get_engine_session,
    health_thresholds,
    session_engine_scope,
)
from app.api.v1.dependencies.db import (
    get_execution_repo,
    get_rule_repo,
    get_rule_repo_for_write,
)
from app.api.v1.dependencies.messaging import get_event_bus, get_job_queue
from app.api.v1.dependencies.user import get_current_user_id
from app.api.v1.dependencies.workflow import (
    get_workflow_analytics_service,
    get_workflow_engine,
    get_workflow_rule_service,
    get_workflow_rule_service_for_write,
)

__all__ = [
    "build_workflow_engine",
    "get_current_user_id",
    "get_engine_session",
    "get_event_bus",
    "get_execution_repo",
    "get_job_queue",
    "get_rule_repo",
    "get_rule_repo_for_write",
    "get_workflow_analytics_service",
    "get_workflow_engine",
    "get_workflow_rule_service",
    "get_workflow_rule_service_for_write",
    "health_thresholds",
    "session_engine_scope",
]
