"""
Context managers and utilities for span management.

Provides context managers for creating spans and adding attributes/events
to the current span without explicit span references.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Context manager for tracing operations.

    Creates a span, stringifies the given attributes onto it and records
    any exception raised inside the block before re-raising it.

    Example:
        >>> with trace_operation("run_batch", entity="tickets") as span:
        ...     result = runner.run_batch()
        ...     span.set_attribute("rows", result.total_processed)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """Add attributes to the current span, if one is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))


def add_span_event(name: str, **attributes):
    """
    Add an event to the current span.

    Example:
        >>> with trace_operation("run_batch"):
        ...     add_span_event("circuit_breaker_tripped", errors=10)
    """
    current_span = trace.get_current_span()
    if current_span.is_recording():
        attrs = {k: str(v) for k, v in attributes.items()}
        current_span.add_event(name, attributes=attrs)
