"""Application services: condition evaluation, templating, rule validation, builder parsing."""

from app.application.services.condition_evaluator import (
    ConditionEvaluator,
    evaluate_condition,
)
from app.application.services.template_resolver import TemplateResolver
from app.application.services.workflow_builder_parser import parse_builder_graph
from app.application.services.workflow_rule_validator import (
    validate_actions,
    validate_conditions,
    validate_rule_definition,
)

__all__ = [
    "ConditionEvaluator",
    "TemplateResolver",
    "evaluate_condition",
    "parse_builder_graph",
    "validate_actions",
    "validate_conditions",
    "validate_rule_definition",
]
