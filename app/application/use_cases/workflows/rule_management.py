"""Workflow rule management: CRUD, toggle, clone, import/export, bulk toggle, builder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.application.dtos.workflow import (
    Page,
    WorkflowBuilderGraph,
    WorkflowRuleCreate,
    WorkflowRuleFilter,
    WorkflowRuleUpdate,
)
from app.application.services import workflow_catalog
from app.application.services.workflow_builder_parser import parse_builder_graph
from app.application.services.workflow_rule_validator import (
    parse_actions,
    parse_conditions,
    parse_trigger,
    validate_rule_definition,
)
from app.domain.enums import WorkflowTrigger
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.shared.enums import WorkflowEventTopic
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IWorkflowRuleRepository
    from app.application.interfaces.services import IEventBus
    from app.domain.entities.workflow import WorkflowRuleEntity

logger = get_logger(__name__)

EXPORT_FORMAT_VERSION = "1.0"


def _trigger_value(rule: WorkflowRuleEntity) -> str:
    trigger = rule.trigger
    return trigger.value if isinstance(trigger, WorkflowTrigger) else str(trigger)


class WorkflowRuleService:
    """Creates, edits and catalogs workflow rules; publishes rule lifecycle events."""

    def __init__(self, rule_repo: IWorkflowRuleRepository, event_bus: IEventBus) -> None:
        self._rule_repo = rule_repo
        self._event_bus = event_bus

    async def _publish_lifecycle(self, topic: WorkflowEventTopic, rule: WorkflowRuleEntity) -> None:
        await self._event_bus.publish(
            topic.value,
            {"ruleId": rule.id, "name": rule.name, "trigger": _trigger_value(rule)},
        )

    async def create_rule(
        self, data: WorkflowRuleCreate, created_by: str | None = None
    ) -> WorkflowRuleEntity:
        """Validate and persist a new rule.

        Raises:
            ValidationException: No actions, unknown action type, unknown
                operator, or unknown trigger.
        """
        validate_rule_definition(data.actions, data.conditions)
        trigger = parse_trigger(data.trigger)
        rule = await self._rule_repo.create_rule(
            name=data.name,
            description=data.description,
            trigger=trigger,
            conditions=parse_conditions(data.conditions),
            actions=parse_actions(data.actions),
            is_active=data.is_active,
            created_by=created_by,
        )
        logger.info("Workflow rule created: %s (%s)", rule.id, rule.name)
        await self._publish_lifecycle(WorkflowEventTopic.RULE_CREATED, rule)
        return rule

    async def get_rule(self, rule_id: str) -> WorkflowRuleEntity:
        rule = await self._rule_repo.get_rule(rule_id)
        if rule is None:
            raise ResourceNotFoundException("workflow_rule", rule_id)
        return rule

    async def list_rules(self, filters: WorkflowRuleFilter) -> Page[WorkflowRuleEntity]:
        items, total = await self._rule_repo.list_rules(filters)
        return Page(items=items, total=total, page=filters.page, limit=filters.limit)

    async def update_rule(self, rule_id: str, data: WorkflowRuleUpdate) -> WorkflowRuleEntity:
        """Apply a partial update; re-validates when conditions or actions are supplied."""
        rule = await self.get_rule(rule_id)
        if data.conditions is not None or data.actions is not None:
            validate_rule_definition(
                data.actions if data.actions is not None else rule.actions_as_dicts(),
                data.conditions if data.conditions is not None else rule.conditions_as_dicts(),
            )
        if data.name is not None:
            rule.name = data.name
        if data.description is not None:
            rule.description = data.description
        if data.trigger is not None:
            rule.trigger = parse_trigger(data.trigger)
        if data.conditions is not None:
            rule.conditions = parse_conditions(data.conditions)
        if data.actions is not None:
            rule.actions = parse_actions(data.actions)
        if data.is_active is not None:
            rule.is_active = data.is_active
        rule = await self._rule_repo.update_rule(rule)
        logger.info("Workflow rule updated: %s", rule.id)
        await self._publish_lifecycle(WorkflowEventTopic.RULE_UPDATED, rule)
        return rule

    async def delete_rule(self, rule_id: str) -> None:
        """Delete a rule and all of its executions."""
        rule = await self.get_rule(rule_id)
        await self._rule_repo.delete_rule(rule_id)
        logger.info("Workflow rule deleted: %s", rule_id)
        await self._publish_lifecycle(WorkflowEventTopic.RULE_DELETED, rule)

    async def toggle_rule(self, rule_id: str) -> WorkflowRuleEntity:
        rule = await self.get_rule(rule_id)
        rule.is_active = not rule.is_active
        return await self._rule_repo.update_rule(rule)

    async def clone_rule(
        self,
        rule_id: str,
        new_name: str | None = None,
        created_by: str | None = None,
    ) -> WorkflowRuleEntity:
        """Copy a rule under a new name. Clones start inactive."""
        rule = await self.get_rule(rule_id)
        return await self._rule_repo.create_rule(
            name=new_name or f"{rule.name} (Copy)",
            description=rule.description,
            trigger=parse_trigger(_trigger_value(rule)),
            conditions=list(rule.conditions),
            actions=list(rule.actions),
            is_active=False,
            created_by=created_by,
        )

    async def export_rule(self, rule_id: str) -> dict[str, Any]:
        """Return a version-tagged snapshot of the rule definition."""
        rule = await self.get_rule(rule_id)
        return {
            "name": rule.name,
            "trigger": _trigger_value(rule),
            "conditions": rule.conditions_as_dicts(),
            "actions": rule.actions_as_dicts(),
            "exportedAt": utc_now().isoformat(),
            "version": EXPORT_FORMAT_VERSION,
        }

    async def import_rule(
        self, data: dict[str, Any], created_by: str | None = None
    ) -> WorkflowRuleEntity:
        """Create an inactive rule from an exported snapshot."""
        if not data.get("name") or not data.get("trigger") or data.get("actions") is None:
            raise ValidationException("Invalid workflow rule data: missing required fields")
        return await self.create_rule(
            WorkflowRuleCreate(
                name=data["name"],
                trigger=data["trigger"],
                conditions=data.get("conditions") or [],
                actions=data["actions"],
                description=data.get("description"),
                is_active=False,
            ),
            created_by,
        )

    async def bulk_toggle_rules(self, rule_ids: list[str], is_active: bool) -> int:
        """Set is_active on many rules; return how many were changed."""
        if not rule_ids:
            return 0
        return await self._rule_repo.set_active_many(rule_ids, is_active)

    async def create_from_builder(
        self, graph: WorkflowBuilderGraph, created_by: str | None = None
    ) -> WorkflowRuleEntity:
        return await self.create_rule(parse_builder_graph(graph), created_by)

    def available_triggers(self) -> list[dict[str, Any]]:
        return workflow_catalog.available_triggers()

    def available_actions(self) -> list[dict[str, Any]]:
        return workflow_catalog.available_actions()

    def available_operators(self) -> list[dict[str, Any]]:
        return workflow_catalog.available_operators()
