"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    IWorkflowExecutionRepository,
    IWorkflowRuleRepository,
)
from app.application.interfaces.services import (
    EventHandler,
    IActionExecutor,
    IConditionEvaluator,
    IEntityStatusWriter,
    IEventBus,
    IJobQueue,
    ITemplateResolver,
    IWorkflowEngine,
)

__all__ = [
    "EventHandler",
    "IActionExecutor",
    "IConditionEvaluator",
    "IEntityStatusWriter",
    "IEventBus",
    "IJobQueue",
    "ITemplateResolver",
    "IWorkflowEngine",
    "IWorkflowExecutionRepository",
    "IWorkflowRuleRepository",
]
