"""In-process event bus (implements IEventBus).

publish() hands every subscriber its own task and returns without waiting
for them. Handler exceptions are logged and never reach the publisher or
sibling handlers. drain() waits for all in-flight deliveries, including
events published by handlers while draining.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

from app.application.dtos.messaging import EventMessage
from app.application.interfaces.services import EventHandler
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


async def deliver(handler: EventHandler, message: EventMessage) -> None:
    """Run one handler for message; log and swallow its failure."""
    try:
        await handler(message)
    except Exception:
        logger.exception(
            "Event handler %s failed for %s",
            getattr(handler, "__qualname__", repr(handler)),
            message.type,
        )


class InMemoryEventBus:
    """Topic -> handlers map with task-per-delivery dispatch."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._tasks: set[asyncio.Task[None]] = set()

    async def publish(
        self,
        topic: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        message = EventMessage(type=topic, payload=payload, metadata=metadata)
        handlers = list(self._handlers.get(topic, ()))
        logger.debug("Publishing %s to %d handler(s)", topic, len(handlers))
        for handler in handlers:
            task = asyncio.create_task(deliver(handler, message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return True

    def subscribe(self, topic: str, handler: EventHandler) -> None:
        self._handlers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, ()))

    async def drain(self) -> None:
        """Wait until no deliveries are in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight deliveries (application shutdown)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
