"""Infrastructure implementations of application service interfaces."""

from app.infrastructure.services.entity_status_writer import SqlEntityStatusWriter
from app.infrastructure.services.workflow_action_executor import WorkflowActionExecutor
from app.infrastructure.services.workflow_engine import WorkflowEngine
from app.infrastructure.services.workflow_triggers import (
    TRIGGER_BY_TOPIC,
    WorkflowTriggerSubscriber,
)

__all__ = [
    "TRIGGER_BY_TOPIC",
    "SqlEntityStatusWriter",
    "WorkflowActionExecutor",
    "WorkflowEngine",
    "WorkflowTriggerSubscriber",
]
