"""Domain layer: workflow entities, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import (
    WorkflowAction,
    WorkflowCondition,
    WorkflowExecutionEntity,
    WorkflowRuleEntity,
)
from app.domain.enums import (
    BuilderNodeType,
    ConditionOperator,
    WorkflowActionType,
    WorkflowTrigger,
)
from app.domain.exceptions import (
    ActionExecutionException,
    HireflowException,
    InvalidStateException,
    ResourceNotFoundException,
    ValidationException,
)

__all__ = [
    # Entities
    "WorkflowAction",
    "WorkflowCondition",
    "WorkflowExecutionEntity",
    "WorkflowRuleEntity",
    # Enums
    "BuilderNodeType",
    "ConditionOperator",
    "WorkflowActionType",
    "WorkflowTrigger",
    # Exceptions
    "ActionExecutionException",
    "HireflowException",
    "InvalidStateException",
    "ResourceNotFoundException",
    "ValidationException",
]
