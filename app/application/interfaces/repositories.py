"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs or domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from app.shared.enums import ExecutionStatus

if TYPE_CHECKING:
    from app.application.dtos.workflow import ExecutionFilter, WorkflowRuleFilter
    from app.domain.entities.workflow import (
        WorkflowAction,
        WorkflowCondition,
        WorkflowExecutionEntity,
        WorkflowRuleEntity,
    )
    from app.domain.enums import WorkflowTrigger


# Workflow rule repository interface
class IWorkflowRuleRepository(Protocol):
    """Protocol for workflow rule storage (DIP)."""

    async def get_rule(self, rule_id: str) -> WorkflowRuleEntity | None:
        """Return rule by id or None."""

    async def create_rule(
        self,
        *,
        name: str,
        trigger: WorkflowTrigger,
        conditions: list[WorkflowCondition],
        actions: list[WorkflowAction],
        is_active: bool = True,
        created_by: str | None = None,
        description: str | None = None,
    ) -> WorkflowRuleEntity:
        """Persist a new rule and return it with id and timestamps."""

    async def update_rule(self, rule: WorkflowRuleEntity) -> WorkflowRuleEntity:
        """Persist the mutable fields of rule; raise ResourceNotFoundException if gone."""

    async def delete_rule(self, rule_id: str) -> bool:
        """Delete rule (executions cascade). Return False when no such rule."""

    async def list_rules(
        self, filters: WorkflowRuleFilter
    ) -> tuple[list[WorkflowRuleEntity], int]:
        """Return one page of rules (newest first) and the filtered total."""

    async def get_active_rules_by_trigger(
        self, trigger: WorkflowTrigger
    ) -> list[WorkflowRuleEntity]:
        """Return active rules listening for trigger, oldest first."""

    async def set_active_many(self, rule_ids: list[str], is_active: bool) -> int:
        """Set is_active on the given rules; return number of rows changed."""

    async def count_rules(self, *, is_active: bool | None = None) -> int:
        """Count rules, optionally only active or only inactive ones."""


# Workflow execution repository interface
class IWorkflowExecutionRepository(Protocol):
    """Protocol for workflow execution storage (DIP)."""

    async def create_execution(
        self,
        rule_id: str,
        input_data: dict[str, Any],
        status: ExecutionStatus = ExecutionStatus.RUNNING,
    ) -> WorkflowExecutionEntity:
        """Create an execution record (persisted immediately) and return it."""

    async def get_execution(self, execution_id: str) -> WorkflowExecutionEntity | None:
        """Return execution by id (with its rule's name and trigger) or None."""

    async def save_execution(
        self,
        execution: WorkflowExecutionEntity,
        *,
        expected_statuses: Collection[ExecutionStatus] | None = None,
    ) -> WorkflowExecutionEntity | None:
        """Persist status, output and error of execution.

        With expected_statuses the write only applies while the stored status
        is one of them; otherwise nothing changes and None is returned.
        Raises ResourceNotFoundException when the execution does not exist.
        """

    async def transition_status(
        self,
        execution_id: str,
        status: ExecutionStatus,
        *,
        expected_statuses: Collection[ExecutionStatus],
    ) -> WorkflowExecutionEntity | None:
        """Change only the status, from one of expected_statuses; None when it was not."""

    async def list_executions(
        self, filters: ExecutionFilter
    ) -> tuple[list[WorkflowExecutionEntity], int]:
        """Return one page of executions (newest first) and the filtered total."""

    async def list_executions_since(
        self, since: datetime, *, rule_id: str | None = None
    ) -> list[WorkflowExecutionEntity]:
        """Return all executions at or after since, optionally for one rule."""

    async def list_by_status(
        self, status: ExecutionStatus
    ) -> list[WorkflowExecutionEntity]:
        """Return executions in status, newest first."""

    async def count_by_status(
        self, statuses: list[ExecutionStatus], *, since: datetime | None = None
    ) -> int:
        """Count executions whose status is in statuses, optionally since a time."""
