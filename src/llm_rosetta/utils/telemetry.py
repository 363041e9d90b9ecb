"""OpenTelemetry tracing helpers for llm-rosetta.

A thin wrapper around the OpenTelemetry API so the translation engine can
call ``get_tracer()`` whether or not an SDK is installed.  Until an SDK is
configured the API hands out no-op tracers.

Usage::

    from llm_rosetta.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("rosetta.translate") as span:
        span.set_attribute(ATTR_SOURCE, "anthropic")

To export real spans, call :func:`configure_telemetry` once at startup, or pass
``--trace`` / ``--otlp-endpoint`` to the ``rosetta`` CLI (both require the
``otel`` extra: ``pip install llm-rosetta[otel]``).
"""

from __future__ import annotations

import sys
from typing import IO, Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used by the translation spans
# ---------------------------------------------------------------------------

ATTR_SOURCE = "rosetta.source"
ATTR_TARGET = "rosetta.target"
ATTR_SOURCE_INFERRED = "rosetta.source.inferred"
ATTR_DIRECTION = "rosetta.direction"
ATTR_METADATA_MODE = "rosetta.metadata_mode"
ATTR_MESSAGE_COUNT = "rosetta.messages.count"
ATTR_OUTPUT_COUNT = "rosetta.messages.output_count"
ATTR_HAS_SYSTEM = "rosetta.system.present"
ATTR_CANDIDATES = "rosetta.infer.candidates"

_INSTRUMENTATION_NAME = "llm_rosetta"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "llm-rosetta",
    console: bool = False,
    otlp_endpoint: str | None = None,
    stream: IO[str] | None = None,
) -> Any:
    """Install an SDK tracer provider and return it (requires ``llm-rosetta[otel]``).

    Parameters
    ----------
    service_name:
        The ``service.name`` resource attribute.
    console:
        If ``True``, write each finished span as JSON to *stream*
        (``sys.stderr`` by default, so translated payloads on stdout stay clean).
    otlp_endpoint:
        If set, export spans via OTLP/gRPC to this endpoint.

    The caller owns the returned provider and should ``shutdown()`` it to
    flush pending OTLP batches.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package (or, for *otlp_endpoint*, the OTLP
        exporter) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor
    except ImportError as exc:
        msg = "opentelemetry-sdk is required for tracing. Install it with: pip install llm-rosetta[otel]"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if console:
        exporter = ConsoleSpanExporter(service_name=service_name, out=stream or sys.stderr)
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(otlp_endpoint)))

    trace.set_tracer_provider(provider)
    return provider


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install llm-rosetta[otel]"
        )
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
