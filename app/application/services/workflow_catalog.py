"""Static catalogs of triggers, actions and operators for rule editors."""

from __future__ import annotations

from typing import Any

from app.domain.enums import ConditionOperator, WorkflowActionType, WorkflowTrigger

_TRIGGERS: dict[WorkflowTrigger, tuple[str, str]] = {
    WorkflowTrigger.APPLICATION_RECEIVED: (
        "Application Received",
        "Triggered when a new application is submitted",
    ),
    WorkflowTrigger.STAGE_CHANGED: (
        "Stage Changed",
        "Triggered when a candidate moves to a different stage",
    ),
    WorkflowTrigger.INTERVIEW_SCHEDULED: (
        "Interview Scheduled",
        "Triggered when an interview is scheduled",
    ),
    WorkflowTrigger.INTERVIEW_COMPLETED: (
        "Interview Completed",
        "Triggered when an interview is completed",
    ),
    WorkflowTrigger.SCORE_CALCULATED: (
        "Score Calculated",
        "Triggered when a candidate score is calculated",
    ),
    WorkflowTrigger.OFFER_SENT: (
        "Offer Sent",
        "Triggered when an offer is sent to a candidate",
    ),
    WorkflowTrigger.CANDIDATE_REJECTED: (
        "Candidate Rejected",
        "Triggered when a candidate is rejected",
    ),
    WorkflowTrigger.TIME_ELAPSED: (
        "Time Elapsed",
        "Triggered after a specified time period",
    ),
}

_ACTIONS: dict[WorkflowActionType, tuple[str, str, dict[str, str]]] = {
    WorkflowActionType.SEND_EMAIL: (
        "Send Email",
        "Send an email notification",
        {"templateType": "string", "to": "string", "variables": "object"},
    ),
    WorkflowActionType.UPDATE_STATUS: (
        "Update Status",
        "Update entity status",
        {"entityType": "string", "entityId": "string", "status": "string"},
    ),
    WorkflowActionType.MOVE_STAGE: (
        "Move Stage",
        "Move candidate to a different stage",
        {"candidateId": "string", "stageId": "string", "reason": "string"},
    ),
    WorkflowActionType.CREATE_TASK: (
        "Create Task",
        "Create a new task",
        {
            "title": "string",
            "description": "string",
            "assigneeId": "string",
            "dueDate": "string",
        },
    ),
    WorkflowActionType.NOTIFY_USER: (
        "Notify User",
        "Send a notification to a user",
        {"userId": "string", "message": "string", "channel": "string"},
    ),
    WorkflowActionType.TRIGGER_WEBHOOK: (
        "Trigger Webhook",
        "Trigger an external webhook",
        {"webhookId": "string", "payload": "object"},
    ),
    WorkflowActionType.SCHEDULE_INTERVIEW: (
        "Schedule Interview",
        "Schedule an interview",
        {
            "candidateId": "string",
            "jobId": "string",
            "interviewType": "string",
            "duration": "number",
        },
    ),
    WorkflowActionType.CALCULATE_SCORE: (
        "Calculate Score",
        "Calculate candidate score",
        {"candidateId": "string", "jobId": "string"},
    ),
    WorkflowActionType.ADD_TO_TALENT_POOL: (
        "Add to Talent Pool",
        "Add candidate to talent pool",
        {"candidateId": "string", "tags": "array", "status": "string"},
    ),
    WorkflowActionType.REQUEST_APPROVAL: (
        "Request Approval",
        "Request approval from users",
        {"approverIds": "array", "title": "string", "description": "string"},
    ),
}

_OPERATORS: dict[ConditionOperator, tuple[str, str, list[str]]] = {
    ConditionOperator.EQUALS: (
        "Equals",
        "Value equals the specified value",
        ["string", "number", "boolean"],
    ),
    ConditionOperator.NOT_EQUALS: (
        "Not Equals",
        "Value does not equal the specified value",
        ["string", "number", "boolean"],
    ),
    ConditionOperator.CONTAINS: (
        "Contains",
        "Value contains the specified string",
        ["string"],
    ),
    ConditionOperator.NOT_CONTAINS: (
        "Not Contains",
        "Value does not contain the specified string",
        ["string"],
    ),
    ConditionOperator.GREATER_THAN: (
        "Greater Than",
        "Value is greater than the specified number",
        ["number"],
    ),
    ConditionOperator.LESS_THAN: (
        "Less Than",
        "Value is less than the specified number",
        ["number"],
    ),
    ConditionOperator.GREATER_THAN_OR_EQUALS: (
        "Greater Than or Equals",
        "Value is greater than or equal to the specified number",
        ["number"],
    ),
    ConditionOperator.LESS_THAN_OR_EQUALS: (
        "Less Than or Equals",
        "Value is less than or equal to the specified number",
        ["number"],
    ),
    ConditionOperator.IS_EMPTY: (
        "Is Empty",
        "Value is null, undefined, or empty string",
        ["string", "array"],
    ),
    ConditionOperator.IS_NOT_EMPTY: (
        "Is Not Empty",
        "Value is not null, undefined, or empty string",
        ["string", "array"],
    ),
    ConditionOperator.IN_LIST: (
        "In List",
        "Value is in the specified list",
        ["string", "number"],
    ),
    ConditionOperator.NOT_IN_LIST: (
        "Not In List",
        "Value is not in the specified list",
        ["string", "number"],
    ),
}

for _enum, _table in (
    (WorkflowTrigger, _TRIGGERS),
    (WorkflowActionType, _ACTIONS),
    (ConditionOperator, _OPERATORS),
):
    _missing = set(_enum) - _table.keys()
    if _missing:
        raise RuntimeError(f"{_enum.__name__} members missing from catalog: {sorted(_missing)}")


def available_triggers() -> list[dict[str, Any]]:
    return [
        {"value": t.value, "label": label, "description": description}
        for t, (label, description) in _TRIGGERS.items()
    ]


def available_actions() -> list[dict[str, Any]]:
    return [
        {
            "value": a.value,
            "label": label,
            "description": description,
            "configSchema": dict(schema),
        }
        for a, (label, description, schema) in _ACTIONS.items()
    ]


def available_operators() -> list[dict[str, Any]]:
    return [
        {
            "value": o.value,
            "label": label,
            "description": description,
            "applicableTypes": list(types),
        }
        for o, (label, description, types) in _OPERATORS.items()
    ]
