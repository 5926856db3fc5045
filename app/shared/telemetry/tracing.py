"""Utility functions and decorators for distributed tracing."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Allowlist of kwarg names recorded as span attributes (case-insensitive).
# Payloads (input, metadata, config) are never recorded.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "rule_id", "execution_id", "trigger", "action_type", "status", "approved",
    "approver_id", "user_id", "days", "page", "limit", "is_active",
})


def _set_safe_span_attrs(span: trace.Span, kwargs: dict[str, Any]) -> None:
    """Set span attributes from kwargs; only allowlisted keys are recorded."""
    for key, value in kwargs.items():
        if not key.startswith("_") and key.lower() in _SAFE_SPAN_ATTR_KEYS:
            span.set_attribute(f"arg.{key}", str(value))


def _finish_span(span: trace.Span, error: Exception | None) -> None:
    if error is None:
        span.set_status(Status(StatusCode.OK))
        return
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.record_exception(error)


def traced(
    operation_name: str | None = None,
    attributes: dict[str, str | int | float | bool] | None = None,
) -> Callable:
    """Decorator to run a function (sync or async) inside a span.

    Args:
        operation_name: Span name (defaults to module.funcname).
        attributes: Optional static attributes set on every span.

    Returns:
        Decorated function.
    """

    def decorator(func: Callable) -> Callable:
        tracer = trace.get_tracer(__name__)
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        def _open(kwargs: dict[str, Any]) -> trace.Span:
            span = trace.get_current_span()
            for key, value in (attributes or {}).items():
                span.set_attribute(key, value)
            _set_safe_span_attrs(span, kwargs)
            return span

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name):
                span = _open(kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _finish_span(span, e)
                    raise
                _finish_span(span, None)
                return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name):
                span = _open(kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _finish_span(span, e)
                    raise
                _finish_span(span, None)
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def add_span_event(name: str, attributes: dict | None = None) -> None:
    """Add an event to the current span (e.g. one per executed action)."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})


class TracedOperation:
    """Async context manager wrapping a block in its own span."""

    def __init__(self, operation_name: str, attributes: dict | None = None) -> None:
        self.operation_name = operation_name
        self.attributes = attributes or {}
        self.tracer = trace.get_tracer(__name__)
        self.span: trace.Span | None = None

    async def __aenter__(self) -> "TracedOperation":
        self.span = self.tracer.start_span(self.operation_name)
        for key, value in self.attributes.items():
            self.span.set_attribute(key, value)
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self.span is None:
            return
        if isinstance(exc_val, Exception):
            _finish_span(self.span, exc_val)
        else:
            _finish_span(self.span, None)
        self.span.end()
