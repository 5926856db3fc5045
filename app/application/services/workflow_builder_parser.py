"""Turns a visual-builder graph into a rule definition.

Only node kinds and array positions matter: the first trigger node supplies
the trigger, condition nodes become conditions, and action nodes become
actions ordered by their position among action nodes. Edges are not
consulted.
"""

from __future__ import annotations

from typing import Any

from app.application.dtos.workflow import WorkflowBuilderGraph, WorkflowRuleCreate
from app.domain.enums import BuilderNodeType
from app.domain.exceptions import ValidationException


def parse_builder_graph(graph: WorkflowBuilderGraph) -> WorkflowRuleCreate:
    """Extract trigger, conditions and ordered actions from graph nodes.

    Raises:
        ValidationException: If the graph has no trigger node.
    """
    trigger_node = next(
        (n for n in graph.nodes if n.type == BuilderNodeType.TRIGGER.value), None
    )
    if trigger_node is None:
        raise ValidationException("Workflow must have a trigger node", field="nodes")

    conditions: list[dict[str, Any]] = []
    for node in graph.nodes:
        if node.type != BuilderNodeType.CONDITION.value:
            continue
        condition: dict[str, Any] = {
            "field": node.data.get("field"),
            "operator": node.data.get("operator"),
        }
        if "value" in node.data:
            condition["value"] = node.data["value"]
        conditions.append(condition)

    action_nodes = [n for n in graph.nodes if n.type == BuilderNodeType.ACTION.value]
    actions = [
        {
            "type": node.data.get("actionType"),
            "config": node.data.get("config") or {},
            "order": index,
            "stopOnFailure": bool(node.data.get("stopOnFailure", False)),
        }
        for index, node in enumerate(action_nodes)
    ]

    return WorkflowRuleCreate(
        name=graph.name,
        description=graph.description,
        trigger=trigger_node.data.get("trigger"),
        conditions=conditions,
        actions=actions,
        is_active=True,
    )
