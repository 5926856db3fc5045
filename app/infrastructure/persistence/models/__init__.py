"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.mixins import (
    BaseModel,
    CuidMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.workflow import WorkflowExecution, WorkflowRule

__all__ = [
    "BaseModel",
    "CuidMixin",
    "TimestampMixin",
    "WorkflowExecution",
    "WorkflowRule",
]
