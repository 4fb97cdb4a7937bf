"""Unit tests for floe_deletes.logging module.

Tests trace context injection into structlog events and logging setup.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
import structlog
from opentelemetry.sdk.trace import TracerProvider

from floe_deletes.builder import delete_file_builder
from floe_deletes.errors import ValidationError
from floe_deletes.logging import add_trace_context, configure_logging

if TYPE_CHECKING:
    from collections.abc import Generator

    from floe_deletes.models import PartitionSpec


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults so other modules see unfiltered loggers."""
    yield
    structlog.reset_defaults()


class TestAddTraceContext:
    """Tests for the add_trace_context processor."""

    def test_adds_ids_inside_span(self) -> None:
        """Test trace_id and span_id are added as lowercase hex."""
        tracer = TracerProvider().get_tracer("test")

        with tracer.start_as_current_span("test_span"):
            result = add_trace_context(None, "info", {"event": "delete_file_built"})

        assert len(result["trace_id"]) == 32
        assert len(result["span_id"]) == 16
        assert all(c in "0123456789abcdef" for c in result["trace_id"] + result["span_id"])

    def test_no_ids_without_span(self) -> None:
        """Test events are unchanged when no span is active."""
        result = add_trace_context(None, "info", {"event": "delete_file_built"})
        assert result == {"event": "delete_file_built"}

    def test_preserves_existing_fields(self) -> None:
        """Test existing event fields are kept."""
        tracer = TracerProvider().get_tracer("test")
        event_dict: dict[str, Any] = {"event": "delete_file_rejected", "field": "location"}

        with tracer.start_as_current_span("test_span"):
            result = add_trace_context(None, "warning", event_dict)

        assert result["field"] == "location"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test events render as JSON lines with level and timestamp."""
        configure_logging(log_level="INFO", json_output=True)
        structlog.get_logger("test").info("delete_file_built", spec_id=3)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "delete_file_built"
        assert payload["spec_id"] == 3
        assert payload["level"] == "info"
        assert "timestamp" in payload

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test events below the configured level are dropped."""
        configure_logging(log_level="warning")
        structlog.get_logger("test").debug("delete_file_built")

        assert capsys.readouterr().out == ""

    def test_invalid_level(self) -> None:
        """Test unknown level names are rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(log_level="VERBOSE")


class TestBuilderLogCorrelation:
    """Tests that builder events are joined to the build span."""

    def test_rejection_carries_build_span(
        self,
        capsys: pytest.CaptureFixture[str],
        unpartitioned_spec: PartitionSpec,
    ) -> None:
        """Test a rejected build logs the trace and span IDs of its span."""
        tracer = TracerProvider().get_tracer("test")
        configure_logging(log_level="INFO")

        with patch("floe_deletes.telemetry.get_tracer", return_value=tracer):
            with pytest.raises(ValidationError):
                delete_file_builder(unpartitioned_spec).build()

        payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["event"] == "delete_file_rejected"
        assert len(payload["trace_id"]) == 32
        assert len(payload["span_id"]) == 16
