"""Redis Pub/Sub event bus (implements IEventBus across processes).

Each topic maps to channel "{prefix}:{topic}". Subscribers are local
handlers; one listener task per process pattern-subscribes "{prefix}:*" and
delivers each message to the handlers registered for its topic. When Redis
is unreachable, publish() logs and returns False.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from typing import Any

import redis.asyncio as redis

from app.application.dtos.messaging import EventMessage
from app.application.interfaces.services import EventHandler
from app.core.config import get_settings
from app.infrastructure.messaging.event_bus import deliver

logger = logging.getLogger(__name__)


class _RedisPubSubBase:
    """Shared Redis connection and channel logic."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = get_settings()
        self.channel_prefix = self.settings.redis_channel_prefix
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password_value,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis pub/sub connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis pub/sub connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.close()
            self._connected = False
            logger.info("Redis pub/sub disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None

    def _get_channel(self, topic: str) -> str:
        return f"{self.channel_prefix}:{topic}"

    def _topic_from_channel(self, channel: Any) -> str | None:
        channel_str = channel.decode() if isinstance(channel, bytes) else (channel or "")
        prefix = f"{self.channel_prefix}:"
        if not channel_str.startswith(prefix):
            return None
        return channel_str[len(prefix):]


class RedisEventBus(_RedisPubSubBase):
    """Publishes JSON envelopes to Redis and fans incoming ones out to local handlers."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        super().__init__(redis_client)
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._listener: asyncio.Task[None] | None = None

    async def connect(self) -> None:
        await super().connect()
        if self.is_available() and self._listener is None:
            self._listener = asyncio.create_task(self._listen())

    async def disconnect(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        await super().disconnect()

    async def publish(
        self,
        topic: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Publish event to its topic channel.

        Returns:
            True if published, False if Redis unavailable or the publish failed.
        """
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available, dropping event %s", topic)
            return False
        message = EventMessage(type=topic, payload=payload, metadata=metadata)
        try:
            await self.redis.publish(self._get_channel(topic), json.dumps(message.to_dict()))
            logger.debug("Published %s", topic)
        except Exception:
            logger.exception("Failed to publish event %s", topic)
            return False
        else:
            return True

    def subscribe(self, topic: str, handler: EventHandler) -> None:
        self._handlers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    async def _listen(self) -> None:
        """Pattern-subscribe to every topic channel and dispatch to local handlers."""
        if self.redis is None:
            return
        pubsub = self.redis.pubsub()
        try:
            await pubsub.psubscribe(f"{self.channel_prefix}:*")
            logger.info("Subscribed to %s:*", self.channel_prefix)
            async for raw in pubsub.listen():
                if raw["type"] != "pmessage":
                    continue
                topic = self._topic_from_channel(raw.get("channel"))
                handlers = list(self._handlers.get(topic or "", ()))
                if not handlers:
                    continue
                try:
                    message = EventMessage.from_dict(json.loads(raw["data"]))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    logger.exception("Failed to parse event on %s", raw.get("channel"))
                    continue
                for handler in handlers:
                    await deliver(handler, message)
        except asyncio.CancelledError:
            logger.info("Event bus listener cancelled")
            raise
        except Exception:
            logger.exception("Event bus listener error")
        finally:
            await pubsub.punsubscribe()
            await pubsub.close()
