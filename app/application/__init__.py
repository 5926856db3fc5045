"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repos, event bus, job queue, engine).
"""

from app.application.interfaces import (
    IActionExecutor,
    IConditionEvaluator,
    IEntityStatusWriter,
    IEventBus,
    IJobQueue,
    ITemplateResolver,
    IWorkflowEngine,
    IWorkflowExecutionRepository,
    IWorkflowRuleRepository,
)
from app.application.services import ConditionEvaluator, TemplateResolver
from app.application.use_cases import WorkflowAnalyticsService, WorkflowRuleService

__all__ = [
    "ConditionEvaluator",
    "IActionExecutor",
    "IConditionEvaluator",
    "IEntityStatusWriter",
    "IEventBus",
    "IJobQueue",
    "ITemplateResolver",
    "IWorkflowEngine",
    "IWorkflowExecutionRepository",
    "IWorkflowRuleRepository",
    "TemplateResolver",
    "WorkflowAnalyticsService",
    "WorkflowRuleService",
]
