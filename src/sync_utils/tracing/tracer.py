"""
Tracer initialization and configuration for OpenTelemetry.

Sets up a tracer provider for the sync process and wires exporters
only when an OTLP endpoint or console export is requested.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: trace.Tracer | None = None
_provider: TracerProvider | None = None


def initialize_tracing(
    service_name: str = "ticket-sync",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    sampling_rate: float = 1.0,
) -> trace.Tracer:
    """
    Initialize distributed tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (e.g., "localhost:4317").
            Falls back to the OTLP_ENDPOINT environment variable; when
            neither is set no OTLP exporter is attached.
        console_export: If True, also export spans to the console
        sampling_rate: Sampling rate 0.0-1.0 (1.0 = trace everything)

    Returns:
        Configured tracer instance
    """
    global _tracer, _provider

    if _tracer is not None:
        logger.debug("Tracing already initialized, returning existing tracer")
        return _tracer

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(
        resource=resource,
        sampler=TraceIdRatioBased(sampling_rate),
    )

    exporters = []

    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTLP_ENDPOINT")

    if otlp_endpoint:
        try:
            otlp_exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
            provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
            exporters.append("OTLP")
            logger.info(f"OTLP exporter configured: {otlp_endpoint}")
        except Exception as e:
            logger.warning(f"Failed to configure OTLP exporter: {e}")

    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    trace.set_tracer_provider(provider)
    _provider = provider
    _tracer = trace.get_tracer(service_name)

    logger.info(
        f"Tracing initialized: {service_name} "
        f"(exporters: {', '.join(exporters) or 'none'}, sampling: {sampling_rate})"
    )

    return _tracer


def get_tracer() -> trace.Tracer:
    """
    Get the global tracer instance.

    Initializes tracing with defaults if not already initialized.
    """
    if _tracer is None:
        return initialize_tracing()
    return _tracer


def shutdown_tracing() -> None:
    """Flush pending spans and release the tracer provider."""
    global _tracer, _provider

    if _provider is not None:
        _provider.shutdown()
        logger.info("Tracing shut down")

    _provider = None
    _tracer = None
