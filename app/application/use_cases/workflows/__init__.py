"""Workflow use cases: rule management."""

from app.application.use_cases.workflows.rule_management import WorkflowRuleService

__all__ = ["WorkflowRuleService"]
