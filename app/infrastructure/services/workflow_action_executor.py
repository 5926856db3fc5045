"""Runs one workflow action (implements IActionExecutor).

Dispatch is a lookup table keyed by WorkflowActionType with one handler per
kind. Each handler resolves {{path}} placeholders in its config against the
trigger payload, performs its side effect (enqueue a job, publish an event
or write a status) and returns a JSON-serializable result map. Handlers do
not catch their own errors; the engine records them per action.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from app.application.services.template_resolver import TemplateResolver
from app.domain.entities.workflow import (
    AddToTalentPoolConfig,
    CalculateScoreConfig,
    CreateTaskConfig,
    MoveStageConfig,
    NotifyUserConfig,
    RequestApprovalConfig,
    ScheduleInterviewConfig,
    SendEmailConfig,
    TriggerWebhookConfig,
    UpdateStatusConfig,
    WorkflowAction,
)
from app.domain.enums import WorkflowActionType
from app.domain.exceptions import ActionExecutionException
from app.shared.enums import JobName, QueueName, SystemEventType, WorkflowEventTopic
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.dtos.workflow import ActionContext
    from app.application.interfaces.services import (
        IEntityStatusWriter,
        IEventBus,
        IJobQueue,
        ITemplateResolver,
    )

logger = get_logger(__name__)

DEFAULT_MOVE_REASON = "Automated workflow action"
DEFAULT_NOTIFY_CHANNEL = "in_app"
DEFAULT_TALENT_POOL_STATUS = "ACTIVE"

_Handler = Callable[[Any, "ActionContext"], Awaitable[dict[str, Any]]]


class WorkflowActionExecutor:
    """Dispatches an action to its kind's handler."""

    def __init__(
        self,
        event_bus: IEventBus,
        job_queue: IJobQueue,
        status_writer: IEntityStatusWriter,
        template_resolver: ITemplateResolver | None = None,
    ) -> None:
        self._event_bus = event_bus
        self._job_queue = job_queue
        self._status_writer = status_writer
        self._templates = template_resolver or TemplateResolver()
        self._handlers: dict[WorkflowActionType, _Handler] = {
            WorkflowActionType.SEND_EMAIL: self._send_email,
            WorkflowActionType.UPDATE_STATUS: self._update_status,
            WorkflowActionType.MOVE_STAGE: self._move_stage,
            WorkflowActionType.CREATE_TASK: self._create_task,
            WorkflowActionType.NOTIFY_USER: self._notify_user,
            WorkflowActionType.TRIGGER_WEBHOOK: self._trigger_webhook,
            WorkflowActionType.SCHEDULE_INTERVIEW: self._schedule_interview,
            WorkflowActionType.CALCULATE_SCORE: self._calculate_score,
            WorkflowActionType.ADD_TO_TALENT_POOL: self._add_to_talent_pool,
            WorkflowActionType.REQUEST_APPROVAL: self._request_approval,
        }
        unmapped = set(WorkflowActionType) - self._handlers.keys()
        if unmapped:
            raise RuntimeError(f"Action kinds without a handler: {sorted(unmapped)}")

    async def execute(self, action: WorkflowAction, context: ActionContext) -> dict[str, Any]:
        """Run action and return its result map.

        Raises:
            ActionExecutionException: Unknown action type or unusable config.
            Exception: Whatever the side effect raised (queue down, entity missing).
        """
        handler = (
            self._handlers.get(action.type)
            if isinstance(action.type, WorkflowActionType)
            else None
        )
        if handler is None:
            raise ActionExecutionException(str(action.type), "Unknown action type")
        logger.debug("Executing action %s", action.type.value)
        return await handler(action.config, context)

    def _text(self, value: Any, data: dict[str, Any]) -> Any:
        return self._templates.resolve(value, data) if isinstance(value, str) else value

    # ---- Job-producing handlers ----

    async def _send_email(self, config: SendEmailConfig, ctx: ActionContext) -> dict[str, Any]:
        to = self._text(config.to, ctx.input)
        variables = self._templates.resolve_object(config.variables or {}, ctx.input)
        await self._job_queue.add_job(
            QueueName.EMAIL.value,
            JobName.SEND_EMAIL.value,
            {
                "type": "workflow_email",
                "payload": {
                    "templateType": config.template_type,
                    "to": to,
                    "variables": variables,
                },
            },
        )
        return {"queued": True, "to": to}

    async def _notify_user(self, config: NotifyUserConfig, ctx: ActionContext) -> dict[str, Any]:
        user_id = self._text(config.user_id, ctx.input)
        channel = config.channel or DEFAULT_NOTIFY_CHANNEL
        await self._job_queue.add_job(
            QueueName.NOTIFICATIONS.value,
            JobName.SEND_NOTIFICATION.value,
            {
                "type": "workflow_notification",
                "payload": {
                    "userId": user_id,
                    "message": self._text(config.message, ctx.input),
                    "channel": channel,
                },
            },
        )
        return {"userId": user_id, "channel": channel}

    async def _trigger_webhook(
        self, config: TriggerWebhookConfig, ctx: ActionContext
    ) -> dict[str, Any]:
        payload = self._templates.resolve_object(
            config.payload if config.payload is not None else ctx.input, ctx.input
        )
        await self._job_queue.add_job(
            QueueName.WEBHOOKS.value,
            JobName.DELIVER_WEBHOOK.value,
            {
                "type": "workflow_webhook",
                "payload": {"webhookId": config.webhook_id, "payload": payload},
            },
        )
        return {"webhookId": config.webhook_id, "queued": True}

    async def _calculate_score(
        self, config: CalculateScoreConfig, ctx: ActionContext
    ) -> dict[str, Any]:
        candidate_id = self._text(config.candidate_id, ctx.input)
        job_id = self._text(config.job_id, ctx.input)
        await self._job_queue.add_job(
            QueueName.AI_SCORING.value,
            JobName.SCORE_CANDIDATE.value,
            {
                "type": "workflow_scoring",
                "payload": {"candidateId": candidate_id, "jobId": job_id},
            },
        )
        return {"candidateId": candidate_id, "jobId": job_id, "queued": True}

    # ---- Write + event ----

    async def _update_status(
        self, config: UpdateStatusConfig, ctx: ActionContext
    ) -> dict[str, Any]:
        entity_type = self._text(config.entity_type, ctx.input)
        entity_id = self._text(config.entity_id, ctx.input)
        status = self._text(config.status, ctx.input)
        if not entity_type or not entity_id or not status:
            raise ActionExecutionException(
                WorkflowActionType.UPDATE_STATUS.value,
                "entityType, entityId and status are required",
            )
        await self._status_writer.update_status(entity_type, entity_id, status)
        result = {"entityType": entity_type, "entityId": entity_id, "status": status}
        await self._event_bus.publish(WorkflowEventTopic.STATUS_UPDATED.value, dict(result))
        return result

    # ---- Event-only handlers ----

    async def _move_stage(self, config: MoveStageConfig, ctx: ActionContext) -> dict[str, Any]:
        candidate_id = self._text(config.candidate_id, ctx.input)
        stage_id = self._text(config.stage_id, ctx.input)
        await self._event_bus.publish(
            SystemEventType.CANDIDATE_MOVED.value,
            {
                "candidateId": candidate_id,
                "stageId": stage_id,
                "reason": self._text(config.reason, ctx.input) or DEFAULT_MOVE_REASON,
                "automated": True,
            },
        )
        return {"candidateId": candidate_id, "stageId": stage_id}

    async def _create_task(self, config: CreateTaskConfig, ctx: ActionContext) -> dict[str, Any]:
        title = self._text(config.title, ctx.input)
        assignee_id = self._text(config.assignee_id, ctx.input)
        await self._event_bus.publish(
            WorkflowEventTopic.TASK_CREATED.value,
            {
                "title": title,
                "description": self._text(config.description, ctx.input),
                "assigneeId": assignee_id,
                "dueDate": config.due_date,
                "source": "workflow",
            },
        )
        return {"title": title, "assigneeId": assignee_id}

    async def _schedule_interview(
        self, config: ScheduleInterviewConfig, ctx: ActionContext
    ) -> dict[str, Any]:
        candidate_id = self._text(config.candidate_id, ctx.input)
        job_id = self._text(config.job_id, ctx.input)
        await self._event_bus.publish(
            WorkflowEventTopic.INTERVIEW_REQUESTED.value,
            {
                "candidateId": candidate_id,
                "jobId": job_id,
                "interviewType": config.interview_type,
                "duration": config.duration,
                "automated": True,
            },
        )
        return {"candidateId": candidate_id, "jobId": job_id}

    async def _add_to_talent_pool(
        self, config: AddToTalentPoolConfig, ctx: ActionContext
    ) -> dict[str, Any]:
        candidate_id = self._text(config.candidate_id, ctx.input)
        tags = list(config.tags or [])
        await self._event_bus.publish(
            WorkflowEventTopic.TALENT_POOL_ADD.value,
            {
                "candidateId": candidate_id,
                "tags": tags,
                "status": config.status or DEFAULT_TALENT_POOL_STATUS,
                "automated": True,
            },
        )
        return {"candidateId": candidate_id, "tags": tags}

    async def _request_approval(
        self, config: RequestApprovalConfig, ctx: ActionContext
    ) -> dict[str, Any]:
        approver_ids = [self._text(a, ctx.input) for a in config.approver_ids or []]
        title = self._text(config.title, ctx.input)
        description = self._text(config.description, ctx.input)
        await self._event_bus.publish(
            WorkflowEventTopic.APPROVAL_REQUESTED.value,
            {
                "executionId": ctx.execution_id,
                "ruleId": ctx.rule_id,
                "approverIds": approver_ids,
                "title": title,
                "description": description,
                "input": ctx.input,
                "metadata": ctx.metadata,
            },
        )
        return {
            "approverIds": approver_ids,
            "title": title,
            "description": description,
            "pending": True,
        }
