"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowExecutionRepository,
    WorkflowRuleRepository,
)

__all__ = [
    "BaseRepository",
    "WorkflowExecutionRepository",
    "WorkflowRuleRepository",
]
