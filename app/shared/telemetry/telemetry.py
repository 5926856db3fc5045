"""OpenTelemetry tracing configuration.

Console exporter for development, OTLP (gRPC) for collectors such as Jaeger
or Tempo. Instruments FastAPI, the SQLAlchemy engine and the Redis client.
"""

import logging
import threading

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


class TelemetryConfig:
    """Owns the tracer provider and the instrumentations attached to it."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        environment: str = "development",
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.tracer_provider: TracerProvider | None = None

    def _build_exporter(
        self, exporter_type: str, otlp_endpoint: str | None
    ) -> SpanExporter | None:
        if exporter_type == "otlp" and otlp_endpoint:
            logger.info("Using OTLP span exporter: %s", otlp_endpoint)
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        if exporter_type == "none":
            logger.info("Telemetry enabled but no exporter configured")
            return None
        if exporter_type != "console":
            logger.warning("Unknown exporter type '%s', using console", exporter_type)
        return ConsoleSpanExporter()

    def setup_telemetry(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Create the tracer provider and register it globally.

        Args:
            exporter_type: "console", "otlp", or "none".
            otlp_endpoint: OTLP gRPC endpoint (e.g. http://localhost:4317).
            sample_rate: Sampling rate 0.0-1.0.

        Returns:
            TracerProvider, or None when setup failed.
        """
        try:
            resource = Resource(
                attributes={
                    SERVICE_NAME: self.service_name,
                    SERVICE_VERSION: self.service_version,
                    "deployment.environment": self.environment,
                }
            )
            self.tracer_provider = TracerProvider(
                resource=resource, sampler=TraceIdRatioBased(sample_rate)
            )
            exporter = self._build_exporter(exporter_type, otlp_endpoint)
            if exporter is not None:
                self.tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(self.tracer_provider)
            logger.info(
                "OpenTelemetry initialized: service=%s, version=%s, exporter=%s",
                self.service_name,
                self.service_version,
                exporter_type,
            )
            return self.tracer_provider
        except Exception:
            logger.exception("Failed to initialize telemetry")
            self.tracer_provider = None
            return None

    def instrument_fastapi(self, app: FastAPI) -> None:
        """Instrument FastAPI request handling (health probe excluded)."""
        if not self.tracer_provider:
            return
        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=self.tracer_provider,
            excluded_urls="/api/v1/health",
        )
        logger.info("FastAPI instrumentation enabled")

    def instrument_sqlalchemy(self, engine: AsyncEngine) -> None:
        """Instrument rule/execution queries."""
        if not self.tracer_provider:
            return
        SQLAlchemyInstrumentor().instrument(
            engine=engine.sync_engine, tracer_provider=self.tracer_provider
        )
        logger.info("SQLAlchemy instrumentation enabled")

    def instrument_redis(self) -> None:
        """Instrument Redis commands (event bus and job queue)."""
        if not self.tracer_provider:
            return
        RedisInstrumentor().instrument(tracer_provider=self.tracer_provider)
        logger.info("Redis instrumentation enabled")

    def shutdown(self) -> None:
        """Flush remaining spans and shut the provider down."""
        if self.tracer_provider:
            self.tracer_provider.shutdown()
            logger.info("Telemetry shutdown complete")


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    """Return the process-wide telemetry instance (set at startup)."""
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    """Set (or clear, with None) the process-wide telemetry instance."""
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
