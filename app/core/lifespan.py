"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (event bus, job queue, trigger
subscription, telemetry, DB engine dispose).
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def _build_messaging(settings: Settings) -> tuple[object, object]:
    """Event bus and job queue for the configured backends."""
    from app.infrastructure.messaging import (
        InMemoryEventBus,
        InMemoryJobQueue,
        RedisEventBus,
        RedisJobQueue,
    )

    event_bus = (
        RedisEventBus() if settings.event_bus_backend == "redis" else InMemoryEventBus()
    )
    job_queue = (
        RedisJobQueue() if settings.job_queue_backend == "redis" else InMemoryJobQueue()
    )
    return event_bus, job_queue


def _start_trigger_subscriber(
    settings: Settings,
    db_engine: object | None,
    event_bus: object,
    job_queue: object,
) -> object | None:
    """Register the workflow trigger subscriber when this process consumes triggers.

    Needs the database. With the Redis event bus every worker process receives
    every event, so trigger_consumer_enabled must be true on exactly one of them.
    """
    if db_engine is None:
        logger.warning("DATABASE_URL not set: workflow triggers are not registered")
        return None
    if not settings.trigger_consumer_enabled:
        logger.info("Trigger consumption disabled for this process")
        return None
    from app.api.v1.dependencies import session_engine_scope
    from app.infrastructure.services import WorkflowTriggerSubscriber

    subscriber = WorkflowTriggerSubscriber(
        event_bus, partial(session_engine_scope, event_bus, job_queue)
    )
    subscriber.register()
    return subscriber


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: telemetry (if enabled), event bus and job queue
    (connected when Redis-backed), trigger subscription (when the database
    is configured). Shutdown runs in reverse and disposes the SQL engine.
    """
    settings = get_settings()

    # ---- Startup ----
    telemetry = None
    if settings.telemetry_enabled:
        from app.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        logger.info("Telemetry initialized")

    event_bus, job_queue = _build_messaging(settings)
    for component in (event_bus, job_queue):
        connect = getattr(component, "connect", None)
        if connect is not None:
            await connect()
    if telemetry is not None and "redis" in (
        settings.event_bus_backend,
        settings.job_queue_backend,
    ):
        telemetry.instrument_redis()
    app.state.event_bus = event_bus
    app.state.job_queue = job_queue
    logger.info(
        "Messaging ready (event bus: %s, job queue: %s)",
        settings.event_bus_backend,
        settings.job_queue_backend,
    )

    from app.infrastructure.persistence.database import dispose_engine, get_engine

    engine = get_engine()
    if engine is not None and telemetry is not None:
        telemetry.instrument_sqlalchemy(engine)
    app.state.trigger_subscriber = _start_trigger_subscriber(
        settings, engine, event_bus, job_queue
    )

    yield

    # ---- Shutdown ----
    subscriber = getattr(app.state, "trigger_subscriber", None)
    if subscriber is not None:
        subscriber.unregister()
        app.state.trigger_subscriber = None

    for component in (event_bus, job_queue):
        for name in ("close", "disconnect"):
            closer = getattr(component, name, None)
            if closer is not None:
                await closer()
                break
    logger.info("Messaging closed")

    from app.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)

    await dispose_engine()
    logger.info("Database engine disposed")
