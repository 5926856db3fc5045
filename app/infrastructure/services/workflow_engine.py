"""Workflow engine: runs rules against trigger payloads (implements IWorkflowEngine).

Execution state machine:

    RUNNING -> COMPLETED | FAILED
    RUNNING -> PENDING            (REQUEST_APPROVAL suspends the chain)
    PENDING -> RUNNING            (approval granted; chain resumes)
    PENDING -> CANCELLED          (approval rejected)
    PENDING | RUNNING -> CANCELLED (manual cancel)

Every attempt creates its execution record as RUNNING before anything else
runs. Actions run strictly one after another in ascending order; a failed
action is recorded and the chain continues unless that action has
stopOnFailure, which finalizes the execution as FAILED. Cancellation is
cooperative: it is checked before each action and before finalizing, and
never undoes side effects already performed.
"""

from __future__ import annotations

import time
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any

from app.application.dtos.workflow import (
    ActionContext,
    ExecutionFilter,
    ExecutionLogEntry,
    ExecutionLogs,
    Page,
    WorkflowExecutionResult,
)
from app.application.services.condition_evaluator import ConditionEvaluator
from app.domain.entities.workflow import (
    ActionResult,
    ApprovalDecision,
    ExecutionOutput,
    PendingApproval,
    WorkflowAction,
    WorkflowExecutionEntity,
    WorkflowRuleEntity,
)
from app.domain.enums import WorkflowActionType, WorkflowTrigger
from app.domain.exceptions import InvalidStateException, ResourceNotFoundException
from app.infrastructure.services.workflow_triggers import EngineScope, WorkflowTriggerSubscriber
from app.shared.enums import ExecutionStatus, WorkflowEventTopic
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, add_span_event, traced
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.repositories import (
        IWorkflowExecutionRepository,
        IWorkflowRuleRepository,
    )
    from app.application.interfaces.services import (
        IActionExecutor,
        IConditionEvaluator,
        IEventBus,
    )

logger = get_logger(__name__)

_CANCELLABLE = (ExecutionStatus.PENDING, ExecutionStatus.RUNNING)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _type_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


class WorkflowEngine:
    """Executes rules, drives the execution state machine and dispatches triggers."""

    def __init__(
        self,
        rule_repo: IWorkflowRuleRepository,
        execution_repo: IWorkflowExecutionRepository,
        event_bus: IEventBus,
        action_executor: IActionExecutor,
        *,
        condition_evaluator: IConditionEvaluator | None = None,
    ) -> None:
        self.rule_repo = rule_repo
        self.execution_repo = execution_repo
        self.event_bus = event_bus
        self.action_executor = action_executor
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()
        self._trigger_subscriber: WorkflowTriggerSubscriber | None = None

    # ---- Execution ----

    @traced("workflow.execute")
    async def execute_workflow(
        self,
        rule: WorkflowRuleEntity,
        input_data: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> WorkflowExecutionResult:
        """Run rule against input_data and return the finalized (or suspended) result."""
        started = time.perf_counter()
        execution = await self.execution_repo.create_execution(rule.id, input_data)
        add_span_attributes(rule_id=rule.id, execution_id=execution.id)
        logger.info("Executing workflow rule %s (execution %s)", rule.id, execution.id)

        results: list[ActionResult] = []
        try:
            if not self.condition_evaluator.evaluate(rule.conditions, input_data):
                execution.status = ExecutionStatus.COMPLETED
                execution.output = ExecutionOutput(
                    conditions_met=False, execution_time_ms=_elapsed_ms(started)
                )
                saved = await self._finalize(execution)
                if saved is None:
                    return await self._superseded(execution, results, _elapsed_ms(started))
                logger.debug("Conditions not met for rule %s, skipping actions", rule.id)
                return self._to_result(saved, [])
            return await self._run_chain(
                rule,
                execution,
                input_data,
                metadata,
                start_index=0,
                results=results,
                started=started,
            )
        except Exception as e:
            logger.exception("Workflow rule %s execution %s failed", rule.id, execution.id)
            return await self._fail(rule, execution, results, str(e), _elapsed_ms(started))

    async def execute_rule(
        self,
        rule_id: str,
        input_data: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> WorkflowExecutionResult:
        rule = await self._get_rule(rule_id)
        return await self.execute_workflow(rule, input_data, metadata)

    async def _run_chain(
        self,
        rule: WorkflowRuleEntity,
        execution: WorkflowExecutionEntity,
        input_data: dict[str, Any],
        metadata: dict[str, Any] | None,
        *,
        start_index: int,
        results: list[ActionResult],
        started: float,
        base_ms: int = 0,
    ) -> WorkflowExecutionResult:
        """Run sorted actions from start_index, appending to results, then finalize.

        results is owned by the caller, so whatever ran is still there if
        this raises.
        """
        actions = rule.sorted_actions()
        context = ActionContext(
            input=input_data, metadata=metadata, execution_id=execution.id, rule_id=rule.id
        )
        for index in range(start_index, len(actions)):
            if await self._was_cancelled(execution.id):
                return await self._stop_cancelled(execution, results, base_ms + _elapsed_ms(started))
            action = actions[index]
            result = await self._run_action(action, context)
            results.append(result)
            if not result.success and action.stop_on_failure:
                return await self._fail(
                    rule, execution, results, result.error or "", base_ms + _elapsed_ms(started)
                )
            if result.success and action.type == WorkflowActionType.REQUEST_APPROVAL:
                return await self._suspend(
                    execution, results, index, metadata, base_ms + _elapsed_ms(started)
                )

        if await self._was_cancelled(execution.id):
            return await self._stop_cancelled(execution, results, base_ms + _elapsed_ms(started))
        return await self._complete(rule, execution, results, base_ms + _elapsed_ms(started))

    async def _run_action(self, action: WorkflowAction, context: ActionContext) -> ActionResult:
        """Run one action; any failure becomes a failed ActionResult."""
        action_type = _type_value(action.type)
        started = time.perf_counter()
        try:
            payload = await self.action_executor.execute(action, context)
        except Exception as e:
            logger.exception("Action %s failed (execution %s)", action_type, context.execution_id)
            add_span_event("workflow.action", {"action_type": action_type, "success": False})
            return ActionResult(
                action_type=action_type,
                success=False,
                execution_time_ms=_elapsed_ms(started),
                error=str(e),
            )
        add_span_event("workflow.action", {"action_type": action_type, "success": True})
        return ActionResult(
            action_type=action_type,
            success=True,
            execution_time_ms=_elapsed_ms(started),
            result=payload,
        )

    async def _was_cancelled(self, execution_id: str) -> bool:
        current = await self.execution_repo.get_execution(execution_id)
        return current is not None and current.status == ExecutionStatus.CANCELLED

    # ---- Finalization ----

    async def _finalize(
        self, execution: WorkflowExecutionEntity
    ) -> WorkflowExecutionEntity | None:
        """Write the outcome of a running execution; None if it is no longer RUNNING."""
        return await self.execution_repo.save_execution(
            execution, expected_statuses=(ExecutionStatus.RUNNING,)
        )

    async def _superseded(
        self,
        execution: WorkflowExecutionEntity,
        results: list[ActionResult],
        elapsed_ms: int,
    ) -> WorkflowExecutionResult:
        """The record left RUNNING elsewhere: a cancel keeps what ran, a terminal state is kept."""
        stored = await self.get_execution(execution.id)
        if stored.status == ExecutionStatus.CANCELLED:
            return await self._stop_cancelled(stored, results, elapsed_ms)
        logger.warning(
            "Workflow execution %s is already %s; not finalizing it again",
            execution.id,
            stored.status.value,
        )
        recorded = stored.output.action_results if stored.output else results
        return self._to_result(stored, recorded)

    async def _complete(
        self,
        rule: WorkflowRuleEntity,
        execution: WorkflowExecutionEntity,
        results: list[ActionResult],
        elapsed_ms: int,
    ) -> WorkflowExecutionResult:
        execution.status = ExecutionStatus.COMPLETED
        execution.error = None
        execution.output = self._merge_output(execution, results, elapsed_ms)
        saved = await self._finalize(execution)
        if saved is None:
            return await self._superseded(execution, results, elapsed_ms)
        logger.info("Workflow execution %s completed in %dms", saved.id, elapsed_ms)
        await self.event_bus.publish(
            WorkflowEventTopic.EXECUTION_COMPLETED.value,
            {
                "executionId": saved.id,
                "ruleId": rule.id,
                "ruleName": rule.name,
                "executionTimeMs": elapsed_ms,
            },
        )
        return self._to_result(saved, results)

    async def _fail(
        self,
        rule: WorkflowRuleEntity,
        execution: WorkflowExecutionEntity,
        results: list[ActionResult],
        error: str,
        elapsed_ms: int,
    ) -> WorkflowExecutionResult:
        execution.status = ExecutionStatus.FAILED
        execution.error = error
        execution.output = self._merge_output(execution, results, elapsed_ms)
        saved = await self._finalize(execution)
        if saved is None:
            return await self._superseded(execution, results, elapsed_ms)
        logger.warning("Workflow execution %s failed: %s", saved.id, error)
        await self.event_bus.publish(
            WorkflowEventTopic.EXECUTION_FAILED.value,
            {
                "executionId": saved.id,
                "ruleId": rule.id,
                "ruleName": rule.name,
                "error": error,
            },
        )
        return self._to_result(saved, results)

    async def _suspend(
        self,
        execution: WorkflowExecutionEntity,
        results: list[ActionResult],
        index: int,
        metadata: dict[str, Any] | None,
        elapsed_ms: int,
    ) -> WorkflowExecutionResult:
        """Park the execution as PENDING until an approver decides."""
        requested = results[-1].result or {}
        execution.status = ExecutionStatus.PENDING
        execution.output = self._merge_output(execution, results, elapsed_ms)
        execution.output.pending_approval = PendingApproval(
            approver_ids=list(requested.get("approverIds") or []),
            title=requested.get("title"),
            description=requested.get("description"),
            requested_at=utc_now().isoformat(),
            resume_from_index=index + 1,
            metadata=metadata,
        )
        saved = await self._finalize(execution)
        if saved is None:
            return await self._superseded(execution, results, elapsed_ms)
        logger.info("Workflow execution %s waiting for approval", saved.id)
        return self._to_result(saved, results)

    async def _stop_cancelled(
        self,
        execution: WorkflowExecutionEntity,
        results: list[ActionResult],
        elapsed_ms: int,
    ) -> WorkflowExecutionResult:
        """Record what ran before a concurrent cancel; status stays CANCELLED."""
        execution.status = ExecutionStatus.CANCELLED
        execution.output = self._merge_output(execution, results, elapsed_ms)
        saved = await self.execution_repo.save_execution(
            execution, expected_statuses=(ExecutionStatus.CANCELLED,)
        )
        logger.info("Workflow execution %s was cancelled while running", execution.id)
        return self._to_result(saved or execution, results)

    @staticmethod
    def _merge_output(
        execution: WorkflowExecutionEntity, results: list[ActionResult], elapsed_ms: int
    ) -> ExecutionOutput:
        previous = execution.output
        return ExecutionOutput(
            conditions_met=True,
            action_results=list(results),
            execution_time_ms=elapsed_ms,
            pending_approval=previous.pending_approval if previous else None,
            approval=previous.approval if previous else None,
        )

    @staticmethod
    def _to_result(
        execution: WorkflowExecutionEntity, results: list[ActionResult]
    ) -> WorkflowExecutionResult:
        return WorkflowExecutionResult(
            execution_id=execution.id,
            status=execution.status,
            output=execution.output.to_dict() if execution.output else None,
            error=execution.error,
            action_results=list(results),
        )

    # ---- Execution management ----

    async def get_execution(self, execution_id: str) -> WorkflowExecutionEntity:
        execution = await self.execution_repo.get_execution(execution_id)
        if execution is None:
            raise ResourceNotFoundException("workflow_execution", execution_id)
        return execution

    async def list_executions(self, filters: ExecutionFilter) -> Page[WorkflowExecutionEntity]:
        items, total = await self.execution_repo.list_executions(filters)
        return Page(items=items, total=total, page=filters.page, limit=filters.limit)

    async def retry_execution(self, execution_id: str) -> WorkflowExecutionResult:
        """Run a FAILED execution's rule again with its original input (new execution record)."""
        execution = await self.get_execution(execution_id)
        if not execution.can_retry():
            raise InvalidStateException(
                "Only failed executions can be retried",
                execution_id=execution.id,
                current_status=execution.status.value,
                allowed_statuses=[ExecutionStatus.FAILED.value],
            )
        rule = await self._get_rule(execution.rule_id)
        logger.info("Retrying workflow execution %s", execution.id)
        return await self.execute_workflow(rule, execution.input, {"retryOf": execution.id})

    async def cancel_execution(self, execution_id: str) -> WorkflowExecutionEntity:
        """Cancel a PENDING or RUNNING execution.

        The status change is conditional, so a record finalized after it was
        read is reported as an invalid state instead of being overwritten.
        """
        execution = await self.get_execution(execution_id)
        if execution.can_cancel():
            cancelled = await self.execution_repo.transition_status(
                execution.id, ExecutionStatus.CANCELLED, expected_statuses=_CANCELLABLE
            )
            if cancelled is not None:
                logger.info("Workflow execution %s cancelled", cancelled.id)
                return cancelled
            execution = await self.get_execution(execution_id)
        raise InvalidStateException(
            "Only pending or running executions can be cancelled",
            execution_id=execution.id,
            current_status=execution.status.value,
            allowed_statuses=[s.value for s in _CANCELLABLE],
        )

    async def process_approval(
        self,
        execution_id: str,
        approved: bool,
        approver_id: str,
        comment: str | None = None,
    ) -> WorkflowExecutionEntity:
        """Record an approver's decision on a PENDING execution.

        Approved: RUNNING, approval_granted is published, then the remaining
        actions run and the execution is finalized. Rejected: CANCELLED.
        """
        execution = await self.get_execution(execution_id)
        if not execution.is_awaiting_approval():
            raise self._not_pending(execution)
        add_span_attributes(execution_id=execution.id, approved=approved)
        output = execution.output or ExecutionOutput()
        output.approval = ApprovalDecision(
            approved=approved,
            approver_id=approver_id,
            comment=comment,
            processed_at=utc_now().isoformat(),
        )
        execution.output = output
        event_payload = {
            "executionId": execution.id,
            "ruleId": execution.rule_id,
            "approverId": approver_id,
            "comment": comment,
        }

        if not approved:
            execution.status = ExecutionStatus.CANCELLED
            execution.error = f"Rejected by approver: {comment or 'No reason provided'}"
        else:
            execution.status = ExecutionStatus.RUNNING
        saved = await self.execution_repo.save_execution(
            execution, expected_statuses=(ExecutionStatus.PENDING,)
        )
        if saved is None:
            raise self._not_pending(await self.get_execution(execution_id))

        if not approved:
            logger.info("Workflow execution %s rejected by %s", saved.id, approver_id)
            await self.event_bus.publish(
                WorkflowEventTopic.APPROVAL_REJECTED.value, event_payload
            )
            return saved

        logger.info("Workflow execution %s approved by %s", saved.id, approver_id)
        await self.event_bus.publish(WorkflowEventTopic.APPROVAL_GRANTED.value, event_payload)
        await self._resume(saved)
        return await self.get_execution(saved.id)

    @staticmethod
    def _not_pending(execution: WorkflowExecutionEntity) -> InvalidStateException:
        return InvalidStateException(
            "Execution is not pending approval",
            execution_id=execution.id,
            current_status=execution.status.value,
            allowed_statuses=[ExecutionStatus.PENDING.value],
        )

    async def _resume(self, execution: WorkflowExecutionEntity) -> None:
        """Continue an approved execution's chain after its approval gate."""
        output = execution.output or ExecutionOutput()
        pending = output.pending_approval
        rule = await self.rule_repo.get_rule(execution.rule_id)
        if rule is None:
            raise ResourceNotFoundException("workflow_rule", execution.rule_id)
        started = time.perf_counter()
        base_ms = output.execution_time_ms or 0
        results = list(output.action_results or [])
        try:
            await self._run_chain(
                rule,
                execution,
                execution.input,
                pending.metadata if pending else None,
                start_index=pending.resume_from_index if pending else 0,
                results=results,
                started=started,
                base_ms=base_ms,
            )
        except Exception as e:
            logger.exception("Resuming workflow execution %s failed", execution.id)
            await self._fail(rule, execution, results, str(e), base_ms + _elapsed_ms(started))

    async def get_pending_approvals(self, user_id: str) -> list[WorkflowExecutionEntity]:
        """PENDING executions whose approvers include user_id, newest first."""
        pending = await self.execution_repo.list_by_status(ExecutionStatus.PENDING)
        return [e for e in pending if e.awaits_approver(user_id)]

    async def get_execution_logs(self, execution_id: str) -> ExecutionLogs:
        """Synthesize log lines from the stored execution record."""
        execution = await self.get_execution(execution_id)
        timestamp = (execution.executed_at or utc_now()).isoformat()
        output = execution.output
        logs = [
            ExecutionLogEntry(
                timestamp=timestamp,
                level="INFO",
                message="Workflow execution started",
                data={"ruleId": execution.rule_id, "trigger": execution.rule_trigger},
            )
        ]
        if output is not None and output.conditions_met is not None:
            if output.conditions_met:
                logs.append(
                    ExecutionLogEntry(timestamp, "INFO", "All conditions met, proceeding with actions")
                )
            else:
                logs.append(
                    ExecutionLogEntry(timestamp, "DEBUG", "Conditions not met, skipping actions")
                )
        for result in (output.action_results if output else None) or []:
            data = {
                "actionType": result.action_type,
                "executionTimeMs": result.execution_time_ms,
                "result": result.result,
            }
            if result.success:
                logs.append(
                    ExecutionLogEntry(
                        timestamp, "INFO", f"Action {result.action_type} completed successfully", data
                    )
                )
            else:
                logs.append(
                    ExecutionLogEntry(
                        timestamp, "ERROR", f"Action {result.action_type} failed: {result.error}", data
                    )
                )

        if execution.status == ExecutionStatus.COMPLETED:
            logs.append(
                ExecutionLogEntry(
                    timestamp,
                    "INFO",
                    f"Workflow execution completed in {execution.execution_time_ms or 0}ms",
                )
            )
        elif execution.status == ExecutionStatus.FAILED:
            logs.append(
                ExecutionLogEntry(timestamp, "ERROR", f"Workflow execution failed: {execution.error}")
            )
        elif execution.status == ExecutionStatus.PENDING:
            logs.append(ExecutionLogEntry(timestamp, "INFO", "Workflow execution waiting for approval"))
        elif execution.status == ExecutionStatus.CANCELLED:
            message = "Workflow execution cancelled"
            if execution.error:
                message = f"{message}: {execution.error}"
            logs.append(ExecutionLogEntry(timestamp, "WARNING", message))
        return ExecutionLogs(execution=execution, logs=logs)

    # ---- Trigger dispatch ----

    async def handle_trigger(
        self,
        trigger: WorkflowTrigger,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
        *,
        rule_scope: EngineScope | None = None,
    ) -> list[WorkflowExecutionResult]:
        """Run every active rule for trigger, one after another.

        Each rule runs in its own engine from rule_scope (for example, its
        own database session), or on this engine when no scope is given. A
        failing rule is logged and skipped; it never stops the others.
        """
        rules = await self.rule_repo.get_active_rules_by_trigger(trigger)
        logger.debug("Trigger %s matched %d active rule(s)", trigger.value, len(rules))
        results: list[WorkflowExecutionResult] = []
        for rule in rules:
            scope = rule_scope() if rule_scope is not None else nullcontext(self)
            try:
                async with scope as engine:
                    results.append(await engine.execute_workflow(rule, payload, metadata))
            except Exception:
                logger.exception(
                    "Workflow rule %s failed for trigger %s", rule.id, trigger.value
                )
        return results

    def register_triggers(self) -> None:
        """Subscribe this engine to every trigger topic on its event bus."""
        if self._trigger_subscriber is None:
            self._trigger_subscriber = WorkflowTriggerSubscriber(
                self.event_bus, lambda: nullcontext(self)
            )
        self._trigger_subscriber.register()

    def unregister_triggers(self) -> None:
        if self._trigger_subscriber is not None:
            self._trigger_subscriber.unregister()

    async def _get_rule(self, rule_id: str) -> WorkflowRuleEntity:
        rule = await self.rule_repo.get_rule(rule_id)
        if rule is None:
            raise ResourceNotFoundException("workflow_rule", rule_id)
        return rule
