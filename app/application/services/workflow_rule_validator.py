"""Validates raw rule definitions before they are parsed or persisted.

Checks, in order: at least one action, every action type is a known
WorkflowActionType, every condition operator is a known ConditionOperator.
The first violation raises ValidationException; nothing is persisted.
"""

from __future__ import annotations

from typing import Any

from app.domain.entities.workflow import WorkflowAction, WorkflowCondition
from app.domain.enums import ConditionOperator, WorkflowActionType, WorkflowTrigger
from app.domain.exceptions import ValidationException


def validate_actions(actions: list[dict[str, Any]] | None) -> None:
    """Raise ValidationException if actions is empty or names an unknown action type."""
    if not actions:
        raise ValidationException("Workflow must have at least one action", field="actions")
    known = WorkflowActionType.values()
    for action in actions:
        action_type = action.get("type") if isinstance(action, dict) else None
        if action_type not in known:
            raise ValidationException(f"Invalid action type: {action_type}", field="actions")
        _check_action_shape(action)


def _check_action_shape(action: dict[str, Any]) -> None:
    config = action.get("config")
    if config is not None and not isinstance(config, dict):
        raise ValidationException("Action config must be an object", field="actions")
    order = action.get("order")
    if order is not None and (isinstance(order, bool) or not isinstance(order, int)):
        raise ValidationException("Action order must be an integer", field="actions")
    stop_on_failure = action.get("stopOnFailure")
    if stop_on_failure is not None and not isinstance(stop_on_failure, bool):
        raise ValidationException("Action stopOnFailure must be a boolean", field="actions")


def validate_conditions(conditions: list[dict[str, Any]] | None) -> None:
    """Raise ValidationException if any condition names an unknown operator."""
    known = ConditionOperator.values()
    for condition in conditions or []:
        operator = condition.get("operator") if isinstance(condition, dict) else None
        if operator not in known:
            raise ValidationException(
                f"Invalid condition operator: {operator}", field="conditions"
            )


def validate_rule_definition(
    actions: list[dict[str, Any]] | None,
    conditions: list[dict[str, Any]] | None,
) -> None:
    validate_actions(actions)
    validate_conditions(conditions)


def parse_trigger(raw: Any) -> WorkflowTrigger:
    """Return the WorkflowTrigger for raw or raise ValidationException."""
    try:
        return WorkflowTrigger(raw)
    except ValueError:
        raise ValidationException(f"Invalid trigger: {raw}", field="trigger") from None


def parse_conditions(conditions: list[dict[str, Any]] | None) -> list[WorkflowCondition]:
    """Parse validated condition maps into entities."""
    return [WorkflowCondition.from_dict(c) for c in conditions or []]


def parse_actions(actions: list[dict[str, Any]]) -> list[WorkflowAction]:
    """Parse validated action maps into entities."""
    return [WorkflowAction.from_dict(a) for a in actions]
