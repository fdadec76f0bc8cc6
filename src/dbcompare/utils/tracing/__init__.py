"""
Distributed tracing using OpenTelemetry.

Spans cover connection setup, fingerprint capture, and per-table
comparison. Nothing is exported unless ``initialize_tracing`` is called.
"""

from .context import add_span_attributes, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
]
