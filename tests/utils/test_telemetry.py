"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest
from opentelemetry import trace

from llm_rosetta.utils.telemetry import (
    ATTR_CANDIDATES,
    ATTR_SOURCE,
    _INSTRUMENTATION_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        tracer = get_tracer()
        assert isinstance(tracer, trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("rosetta.translate") as span:
            span.set_attribute(ATTR_SOURCE, "anthropic")


class TestConfigureTelemetry:
    def setup_method(self) -> None:
        self.original = trace.get_tracer_provider()

    def teardown_method(self) -> None:
        trace.set_tracer_provider(self.original)

    def test_raises_without_sdk(self) -> None:
        """configure_telemetry requires opentelemetry-sdk."""
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry(console=True)

    def test_console_spans_go_to_stream(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")

        stream = io.StringIO()
        provider = configure_telemetry(service_name="test-svc", console=True, stream=stream)
        try:
            with provider.get_tracer("test").start_as_current_span("rosetta.translate") as span:
                span.set_attribute(ATTR_SOURCE, "anthropic")
        finally:
            provider.shutdown()

        output = stream.getvalue()
        assert '"name": "rosetta.translate"' in output
        assert '"rosetta.source": "anthropic"' in output
        assert "test-svc" in output

    def test_without_exporters_writes_nothing(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")

        stream = io.StringIO()
        provider = configure_telemetry(stream=stream)
        with provider.get_tracer("test").start_as_current_span("rosetta.translate"):
            pass
        provider.shutdown()
        assert stream.getvalue() == ""

    def test_otlp_raises_without_exporter(self) -> None:
        """OTLP export requires opentelemetry-exporter-otlp."""
        pytest.importorskip("opentelemetry.sdk.trace")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(otlp_endpoint="http://localhost:4317")


class TestAttributeConstants:
    def test_constants_are_namespaced(self) -> None:
        for attr in (ATTR_SOURCE, ATTR_CANDIDATES):
            assert attr.startswith("rosetta.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "llm_rosetta"
