"""Evaluates rule conditions against a trigger payload (implements IConditionEvaluator).

Conditions are AND-combined; there is no OR or grouping. An empty condition
list always holds. A condition whose operator is unknown never holds.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any

from app.domain.entities.workflow import WorkflowCondition
from app.domain.enums import ConditionOperator
from app.shared.utils.coercion import strict_equals, to_number, to_text
from app.shared.utils.paths import MISSING, get_nested_value


def _is_empty(value: Any) -> bool:
    return value is MISSING or value is None or value == ""


def _compare(check: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def compare(field_value: Any, condition_value: Any) -> bool:
        left, right = to_number(field_value), to_number(condition_value)
        if math.isnan(left) or math.isnan(right):
            return False
        return check(left, right)

    return compare


def _in_list(field_value: Any, condition_value: Any) -> bool:
    return isinstance(condition_value, list) and any(
        strict_equals(item, field_value) for item in condition_value
    )


_OPERATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS: strict_equals,
    ConditionOperator.NOT_EQUALS: lambda f, c: not strict_equals(f, c),
    ConditionOperator.CONTAINS: lambda f, c: to_text(c) in to_text(f),
    ConditionOperator.NOT_CONTAINS: lambda f, c: to_text(c) not in to_text(f),
    ConditionOperator.GREATER_THAN: _compare(lambda a, b: a > b),
    ConditionOperator.LESS_THAN: _compare(lambda a, b: a < b),
    ConditionOperator.GREATER_THAN_OR_EQUALS: _compare(lambda a, b: a >= b),
    ConditionOperator.LESS_THAN_OR_EQUALS: _compare(lambda a, b: a <= b),
    ConditionOperator.IS_EMPTY: lambda f, _c: _is_empty(f),
    ConditionOperator.IS_NOT_EMPTY: lambda f, _c: not _is_empty(f),
    ConditionOperator.IN_LIST: _in_list,
    ConditionOperator.NOT_IN_LIST: lambda f, c: not _in_list(f, c),
}

_unmapped = set(ConditionOperator) - _OPERATORS.keys()
if _unmapped:
    raise RuntimeError(f"Condition operators without an implementation: {sorted(_unmapped)}")


def evaluate_condition(condition: WorkflowCondition, data: dict[str, Any]) -> bool:
    """Return whether a single condition holds for data."""
    check = (
        _OPERATORS.get(condition.operator)
        if isinstance(condition.operator, ConditionOperator)
        else None
    )
    if check is None:
        return False
    field_value = get_nested_value(data, condition.field)
    return check(field_value, condition.value)


class ConditionEvaluator:
    """Stateless AND-evaluator over a rule's conditions."""

    def evaluate(
        self, conditions: Sequence[WorkflowCondition] | None, data: dict[str, Any]
    ) -> bool:
        """Return True iff every condition holds (True for no conditions)."""
        if not conditions:
            return True
        return all(evaluate_condition(c, data) for c in conditions)
