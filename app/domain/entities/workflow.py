"""Workflow rule and execution domain entities.

A rule is a definition: trigger + AND-combined conditions + an ordered
action chain. Each action kind carries its own typed config record; the
storage format (camelCase JSON maps) is produced and parsed only through
from_dict/to_dict at the persistence and API boundaries.

An execution is one attempt to run a rule against a captured input, with a
typed output record (condition outcome, per-action results, approval gate).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from app.domain.enums import ConditionOperator, WorkflowActionType, WorkflowTrigger
from app.shared.enums import ExecutionStatus
from app.shared.utils.paths import MISSING


def _wire(name: str, **kwargs: Any) -> Any:
    """Dataclass field whose storage key is name (camelCase)."""
    return field(metadata={"wire": name}, **kwargs)


def _parse_enum[E: (WorkflowActionType, ConditionOperator, WorkflowTrigger)](
    enum_cls: type[E], raw: Any
) -> E | str:
    """Return the enum member for raw, or raw itself when it is not a known value."""
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


# ---- Conditions ----


@dataclass(frozen=True)
class WorkflowCondition:
    """field/operator/value test against the triggering payload.

    operator stays a plain string when storage holds an unknown operator;
    such a condition never holds. value is MISSING when the stored condition
    has no value key.
    """

    field: str
    operator: ConditionOperator | str
    value: Any = MISSING

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowCondition:
        return cls(
            field=str(data.get("field", "")),
            operator=_parse_enum(ConditionOperator, data.get("operator")),
            value=data.get("value", MISSING),
        )

    def to_dict(self) -> dict[str, Any]:
        operator = (
            self.operator.value
            if isinstance(self.operator, ConditionOperator)
            else self.operator
        )
        data: dict[str, Any] = {"field": self.field, "operator": operator}
        if self.value is not MISSING:
            data["value"] = self.value
        return data


# ---- Action configs (one record per action kind) ----


class _ActionConfig:
    """Shared (de)serialization for action config records."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is not None:
                data[f.metadata.get("wire", f.name)] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Any:
        kwargs = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = f.metadata.get("wire", f.name)
            if key in data and data[key] is not None:
                kwargs[f.name] = data[key]
        return cls(**kwargs)


@dataclass(frozen=True)
class SendEmailConfig(_ActionConfig):
    template_type: str | None = _wire("templateType", default=None)
    to: str | None = _wire("to", default=None)
    variables: dict[str, Any] | None = _wire("variables", default=None)


@dataclass(frozen=True)
class UpdateStatusConfig(_ActionConfig):
    entity_type: str | None = _wire("entityType", default=None)
    entity_id: str | None = _wire("entityId", default=None)
    status: str | None = _wire("status", default=None)


@dataclass(frozen=True)
class MoveStageConfig(_ActionConfig):
    candidate_id: str | None = _wire("candidateId", default=None)
    stage_id: str | None = _wire("stageId", default=None)
    reason: str | None = _wire("reason", default=None)


@dataclass(frozen=True)
class CreateTaskConfig(_ActionConfig):
    title: str | None = _wire("title", default=None)
    description: str | None = _wire("description", default=None)
    assignee_id: str | None = _wire("assigneeId", default=None)
    due_date: str | None = _wire("dueDate", default=None)


@dataclass(frozen=True)
class NotifyUserConfig(_ActionConfig):
    user_id: str | None = _wire("userId", default=None)
    message: str | None = _wire("message", default=None)
    channel: str | None = _wire("channel", default=None)


@dataclass(frozen=True)
class TriggerWebhookConfig(_ActionConfig):
    webhook_id: str | None = _wire("webhookId", default=None)
    payload: dict[str, Any] | None = _wire("payload", default=None)


@dataclass(frozen=True)
class ScheduleInterviewConfig(_ActionConfig):
    candidate_id: str | None = _wire("candidateId", default=None)
    job_id: str | None = _wire("jobId", default=None)
    interview_type: str | None = _wire("interviewType", default=None)
    duration: int | None = _wire("duration", default=None)


@dataclass(frozen=True)
class CalculateScoreConfig(_ActionConfig):
    candidate_id: str | None = _wire("candidateId", default=None)
    job_id: str | None = _wire("jobId", default=None)


@dataclass(frozen=True)
class AddToTalentPoolConfig(_ActionConfig):
    candidate_id: str | None = _wire("candidateId", default=None)
    tags: list[str] | None = _wire("tags", default=None)
    status: str | None = _wire("status", default=None)


@dataclass(frozen=True)
class RequestApprovalConfig(_ActionConfig):
    approver_ids: list[str] | None = _wire("approverIds", default=None)
    title: str | None = _wire("title", default=None)
    description: str | None = _wire("description", default=None)


ActionConfig = (
    SendEmailConfig
    | UpdateStatusConfig
    | MoveStageConfig
    | CreateTaskConfig
    | NotifyUserConfig
    | TriggerWebhookConfig
    | ScheduleInterviewConfig
    | CalculateScoreConfig
    | AddToTalentPoolConfig
    | RequestApprovalConfig
)

ACTION_CONFIG_TYPES: dict[WorkflowActionType, type[_ActionConfig]] = {
    WorkflowActionType.SEND_EMAIL: SendEmailConfig,
    WorkflowActionType.UPDATE_STATUS: UpdateStatusConfig,
    WorkflowActionType.MOVE_STAGE: MoveStageConfig,
    WorkflowActionType.CREATE_TASK: CreateTaskConfig,
    WorkflowActionType.NOTIFY_USER: NotifyUserConfig,
    WorkflowActionType.TRIGGER_WEBHOOK: TriggerWebhookConfig,
    WorkflowActionType.SCHEDULE_INTERVIEW: ScheduleInterviewConfig,
    WorkflowActionType.CALCULATE_SCORE: CalculateScoreConfig,
    WorkflowActionType.ADD_TO_TALENT_POOL: AddToTalentPoolConfig,
    WorkflowActionType.REQUEST_APPROVAL: RequestApprovalConfig,
}

_unmapped = set(WorkflowActionType) - ACTION_CONFIG_TYPES.keys()
if _unmapped:
    raise RuntimeError(f"Action kinds without a config type: {sorted(_unmapped)}")


@dataclass(frozen=True)
class WorkflowAction:
    """One ordered, configured step in a rule's action chain.

    For a stored action with an unknown type, type is the raw string and
    config the raw map; running it fails that action.
    """

    type: WorkflowActionType | str
    config: ActionConfig | dict[str, Any]
    order: int = 0
    stop_on_failure: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowAction:
        action_type = _parse_enum(WorkflowActionType, data.get("type"))
        raw_config = data.get("config") or {}
        config_type = (
            ACTION_CONFIG_TYPES.get(action_type)
            if isinstance(action_type, WorkflowActionType)
            else None
        )
        config = config_type.from_dict(raw_config) if config_type else dict(raw_config)
        return cls(
            type=action_type,
            config=config,
            order=int(data.get("order") or 0),
            stop_on_failure=bool(data.get("stopOnFailure", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        action_type = (
            self.type.value if isinstance(self.type, WorkflowActionType) else self.type
        )
        config = (
            dict(self.config) if isinstance(self.config, dict) else self.config.to_dict()
        )
        return {
            "type": action_type,
            "config": config,
            "order": self.order,
            "stopOnFailure": self.stop_on_failure,
        }


# ---- Rule ----


@dataclass
class WorkflowRuleEntity:
    """Domain entity for a workflow rule (trigger + conditions + actions)."""

    id: str
    name: str
    trigger: WorkflowTrigger | str
    conditions: list[WorkflowCondition]
    actions: list[WorkflowAction]
    is_active: bool = True
    created_by: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def can_trigger_on(self, trigger: WorkflowTrigger) -> bool:
        """Return whether this rule is active and listens for trigger."""
        return self.is_active and self.trigger == trigger

    def sorted_actions(self) -> list[WorkflowAction]:
        """Actions in execution order (ascending order; ties keep definition order)."""
        return sorted(self.actions, key=lambda action: action.order)

    def conditions_as_dicts(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.conditions]

    def actions_as_dicts(self) -> list[dict[str, Any]]:
        return [a.to_dict() for a in self.actions]


# ---- Execution output ----


@dataclass
class ActionResult:
    """Outcome of one action in a chain."""

    action_type: str
    success: bool
    execution_time_ms: int
    result: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionResult:
        return cls(
            action_type=data.get("actionType", ""),
            success=bool(data.get("success", False)),
            execution_time_ms=int(data.get("executionTimeMs") or 0),
            result=data.get("result"),
            error=data.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"actionType": self.action_type, "success": self.success}
        if self.success:
            data["result"] = self.result
        else:
            data["error"] = self.error
        data["executionTimeMs"] = self.execution_time_ms
        return data


@dataclass
class PendingApproval:
    """Approval gate state stored on a suspended (PENDING) execution."""

    approver_ids: list[str]
    title: str | None
    description: str | None
    requested_at: str
    resume_from_index: int
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingApproval:
        return cls(
            approver_ids=list(data.get("approverIds") or []),
            title=data.get("title"),
            description=data.get("description"),
            requested_at=data.get("requestedAt", ""),
            resume_from_index=int(data.get("resumeFromIndex") or 0),
            metadata=data.get("metadata"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "approverIds": self.approver_ids,
            "title": self.title,
            "description": self.description,
            "requestedAt": self.requested_at,
            "resumeFromIndex": self.resume_from_index,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data


@dataclass
class ApprovalDecision:
    """Recorded approver decision on a gated execution."""

    approved: bool
    approver_id: str
    comment: str | None
    processed_at: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApprovalDecision:
        return cls(
            approved=bool(data.get("approved")),
            approver_id=data.get("approverId", ""),
            comment=data.get("comment"),
            processed_at=data.get("processedAt", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "approved": self.approved,
            "approverId": self.approver_id,
            "comment": self.comment,
            "processedAt": self.processed_at,
        }


@dataclass
class ExecutionOutput:
    """Structured result of an execution; absent parts are omitted when stored."""

    conditions_met: bool | None = None
    action_results: list[ActionResult] | None = None
    execution_time_ms: int | None = None
    pending_approval: PendingApproval | None = None
    approval: ApprovalDecision | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ExecutionOutput | None:
        if data is None:
            return None
        results = data.get("actionResults")
        pending = data.get("pendingApproval")
        approval = data.get("approval")
        return cls(
            conditions_met=data.get("conditionsMet"),
            action_results=(
                [ActionResult.from_dict(r) for r in results] if results is not None else None
            ),
            execution_time_ms=data.get("executionTimeMs"),
            pending_approval=PendingApproval.from_dict(pending) if pending else None,
            approval=ApprovalDecision.from_dict(approval) if approval else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.conditions_met is not None:
            data["conditionsMet"] = self.conditions_met
        if self.action_results is not None:
            data["actionResults"] = [r.to_dict() for r in self.action_results]
        if self.execution_time_ms is not None:
            data["executionTimeMs"] = self.execution_time_ms
        if self.pending_approval is not None:
            data["pendingApproval"] = self.pending_approval.to_dict()
        if self.approval is not None:
            data["approval"] = self.approval.to_dict()
        return data


# ---- Execution ----

_CANCELLABLE = (ExecutionStatus.PENDING, ExecutionStatus.RUNNING)


@dataclass
class WorkflowExecutionEntity:
    """Domain entity for one execution attempt of a rule."""

    id: str
    rule_id: str
    status: ExecutionStatus
    input: dict[str, Any]
    output: ExecutionOutput | None = None
    error: str | None = None
    executed_at: datetime | None = None
    rule_name: str | None = None
    rule_trigger: str | None = None

    def can_retry(self) -> bool:
        return self.status == ExecutionStatus.FAILED

    def can_cancel(self) -> bool:
        return self.status in _CANCELLABLE

    def is_awaiting_approval(self) -> bool:
        return self.status == ExecutionStatus.PENDING

    def is_finished(self) -> bool:
        return self.status in (
            ExecutionStatus.COMPLETED,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        )

    @property
    def execution_time_ms(self) -> int | None:
        return self.output.execution_time_ms if self.output else None

    def awaits_approver(self, user_id: str) -> bool:
        """Return whether user_id is one of the approvers this execution waits on."""
        if not self.is_awaiting_approval() or not self.output:
            return False
        pending = self.output.pending_approval
        return pending is not None and user_id in pending.approver_ids
