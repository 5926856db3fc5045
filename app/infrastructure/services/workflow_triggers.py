"""Trigger dispatch: maps system event topics to WorkflowTrigger and feeds them to an engine.

The subscriber is registered explicitly (application startup) on an
injected event bus and unregistered at shutdown. An engine scope yields a
WorkflowEngine (for example, one bound to a fresh database session). Each
delivered event looks up its rules in one scope and runs every matching rule
in a scope of its own.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from app.domain.enums import WorkflowTrigger
from app.shared.enums import SystemEventType
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.dtos.messaging import EventMessage
    from app.application.interfaces.services import IEventBus
    from app.infrastructure.services.workflow_engine import WorkflowEngine

logger = get_logger(__name__)

TRIGGER_BY_TOPIC: dict[str, WorkflowTrigger] = {
    SystemEventType.CANDIDATE_APPLIED.value: WorkflowTrigger.APPLICATION_RECEIVED,
    SystemEventType.CANDIDATE_STAGE_CHANGED.value: WorkflowTrigger.STAGE_CHANGED,
    SystemEventType.INTERVIEW_SCHEDULED.value: WorkflowTrigger.INTERVIEW_SCHEDULED,
    SystemEventType.INTERVIEW_COMPLETED.value: WorkflowTrigger.INTERVIEW_COMPLETED,
    SystemEventType.SCORE_CALCULATED.value: WorkflowTrigger.SCORE_CALCULATED,
    SystemEventType.OFFER_SENT.value: WorkflowTrigger.OFFER_SENT,
    SystemEventType.CANDIDATE_REJECTED.value: WorkflowTrigger.CANDIDATE_REJECTED,
}

EngineScope = Callable[[], AbstractAsyncContextManager["WorkflowEngine"]]


class WorkflowTriggerSubscriber:
    """Subscribes every trigger topic on the bus and runs matching rules per event."""

    def __init__(self, event_bus: IEventBus, engine_scope: EngineScope) -> None:
        self._event_bus = event_bus
        self._engine_scope = engine_scope
        self._registered = False

    @property
    def is_registered(self) -> bool:
        return self._registered

    def register(self) -> None:
        if self._registered:
            return
        for topic in TRIGGER_BY_TOPIC:
            self._event_bus.subscribe(topic, self.on_event)
        self._registered = True
        logger.info("Workflow triggers registered for %d topics", len(TRIGGER_BY_TOPIC))

    def unregister(self) -> None:
        if not self._registered:
            return
        for topic in TRIGGER_BY_TOPIC:
            self._event_bus.unsubscribe(topic, self.on_event)
        self._registered = False
        logger.info("Workflow triggers unregistered")

    async def on_event(self, message: EventMessage) -> None:
        trigger = TRIGGER_BY_TOPIC.get(message.type)
        if trigger is None:
            return
        async with self._engine_scope() as engine:
            await engine.handle_trigger(
                trigger, message.payload, message.metadata, rule_scope=self._engine_scope
            )
