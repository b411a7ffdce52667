"""
Distributed tracing using OpenTelemetry.

Instruments batch runs, store queries and per-row writes so a sync run
can be followed end to end in Jaeger/Tempo.
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
