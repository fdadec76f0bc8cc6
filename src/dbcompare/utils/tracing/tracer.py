"""
Tracer initialization for OpenTelemetry.

Tracing is opt-in: until ``initialize_tracing`` is called, the global
OpenTelemetry provider is the default no-op one and spans cost nothing.
"""

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

TRACER_NAME = "dbcompare"

_provider: TracerProvider | None = None


def initialize_tracing(
    service_name: str = "db-compare",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize distributed tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (e.g., "localhost:4317")
        console_export: If True, also export spans to stdout

    Returns:
        Configured tracer instance
    """
    global _provider

    if _provider is not None:
        logger.warning("Tracing already initialized, returning existing tracer")
        return get_tracer()

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    exporters = []

    if otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        exporters.append("OTLP")
        logger.info(f"OTLP exporter configured: {otlp_endpoint}")

    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    if not exporters:
        logger.warning("No trace exporters configured, tracing will be a no-op")

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(f"Tracing initialized: {service_name} (exporters: {', '.join(exporters) or 'none'})")
    return get_tracer()


def get_tracer() -> trace.Tracer:
    """Return the db-compare tracer from the current global provider."""
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _provider

    if _provider is None:
        return

    try:
        _provider.shutdown()
        logger.info("Tracing shutdown complete")
    finally:
        _provider = None
