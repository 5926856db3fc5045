"""Application use cases: one entry point per workflow."""

from app.application.use_cases.analytics import HealthThresholds, WorkflowAnalyticsService
from app.application.use_cases.workflows import WorkflowRuleService

__all__ = [
    "HealthThresholds",
    "WorkflowAnalyticsService",
    "WorkflowRuleService",
]
