"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.messaging import EventMessage
    from app.application.dtos.workflow import (
        ActionContext,
        ExecutionFilter,
        ExecutionLogs,
        Page,
        WorkflowExecutionResult,
    )
    from app.domain.entities.workflow import (
        WorkflowAction,
        WorkflowCondition,
        WorkflowExecutionEntity,
        WorkflowRuleEntity,
    )

EventHandler = Callable[["EventMessage"], Awaitable[None]]


# Event bus interface
class IEventBus(Protocol):
    """Protocol for topic-based pub/sub (fire-and-forget delivery)."""

    async def publish(
        self,
        topic: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Publish payload on topic; return False when the transport dropped it.

        Handler failures never reach the publisher.
        """

    def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register handler for topic."""

    def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        """Remove handler from topic (no-op when not registered)."""


# Job queue interface
class IJobQueue(Protocol):
    """Protocol for deferred work queues. Enqueue only; completion is never awaited."""

    async def add_job(
        self,
        queue_name: str,
        job_name: str,
        data: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> str:
        """Enqueue a job and return its id. Raises when the queue is unavailable."""


# Entity status writer interface
class IEntityStatusWriter(Protocol):
    """Protocol for writing the status field of an ATS entity (candidate, application, ...)."""

    async def update_status(self, entity_type: str, entity_id: str, status: str) -> None:
        """Set status; raise ResourceNotFoundException when the entity does not exist."""


# Condition evaluator interface
class IConditionEvaluator(Protocol):
    """Protocol for AND-evaluating rule conditions against a payload."""

    def evaluate(
        self, conditions: Sequence[WorkflowCondition] | None, data: dict[str, Any]
    ) -> bool:
        """Return True iff every condition holds (True for no conditions)."""


# Template resolver interface
class ITemplateResolver(Protocol):
    """Protocol for {{path}} placeholder substitution."""

    def resolve(self, template: str, data: dict[str, Any]) -> str:
        """Resolve placeholders in a string."""

    def resolve_object(self, obj: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
        """Resolve placeholders in every string value of a map, at any depth."""


# Action executor interface
class IActionExecutor(Protocol):
    """Protocol for running one workflow action."""

    async def execute(self, action: WorkflowAction, context: ActionContext) -> dict[str, Any]:
        """Run the action's handler and return its result map; raise on failure."""


# Workflow engine interface
class IWorkflowEngine(Protocol):
    """Protocol for the workflow engine (execution and its state machine)."""

    async def execute_workflow(
        self,
        rule: WorkflowRuleEntity,
        input_data: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> WorkflowExecutionResult:
        """Run rule against input and return the finalized result."""

    async def execute_rule(
        self,
        rule_id: str,
        input_data: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> WorkflowExecutionResult:
        """Load rule by id and run it."""

    async def retry_execution(self, execution_id: str) -> WorkflowExecutionResult:
        """Re-run a FAILED execution's rule with its original input."""

    async def cancel_execution(self, execution_id: str) -> WorkflowExecutionEntity:
        """Cancel a PENDING or RUNNING execution."""

    async def process_approval(
        self,
        execution_id: str,
        approved: bool,
        approver_id: str,
        comment: str | None = None,
    ) -> WorkflowExecutionEntity:
        """Grant or reject a PENDING execution's approval gate."""

    async def get_pending_approvals(self, user_id: str) -> list[WorkflowExecutionEntity]:
        """Return executions waiting on user_id's approval."""

    async def get_execution(self, execution_id: str) -> WorkflowExecutionEntity:
        """Return execution by id."""

    async def list_executions(
        self, filters: ExecutionFilter
    ) -> Page[WorkflowExecutionEntity]:
        """Return one page of executions."""

    async def get_execution_logs(self, execution_id: str) -> ExecutionLogs:
        """Return the execution with synthesized log lines."""
