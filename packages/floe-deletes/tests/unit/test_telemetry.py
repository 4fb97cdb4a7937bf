"""Unit tests for floe_deletes.telemetry module.

Tests the @traced decorator for OpenTelemetry instrumentation and the span
created around DeleteFileBuilder operations.

Note:
    No __init__.py files in test directories - pytest uses importlib mode
    which causes namespace collisions with __init__.py files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from opentelemetry.trace import NoOpTracer, StatusCode

from floe_deletes.builder import delete_file_builder
from floe_deletes.errors import ValidationError
from floe_deletes.telemetry import OPERATION_ATTRIBUTE, get_tracer, traced

if TYPE_CHECKING:
    from collections.abc import Generator

    from floe_deletes.models import PartitionSpec


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_tracer() -> Generator[MagicMock, None, None]:
    """Create a mock tracer for testing.

    Yields:
        MagicMock tracer with span context manager.
    """
    mock_span = MagicMock()
    mock_span.__enter__ = MagicMock(return_value=mock_span)
    mock_span.__exit__ = MagicMock(return_value=None)

    mock_tracer = MagicMock()
    mock_tracer.start_as_current_span = MagicMock(return_value=mock_span)

    with patch("floe_deletes.telemetry.get_tracer", return_value=mock_tracer):
        yield mock_tracer


def _span(mock_tracer: MagicMock) -> MagicMock:
    return mock_tracer.start_as_current_span.return_value.__enter__.return_value


# =============================================================================
# traced Decorator Tests
# =============================================================================


class TestTracedDecorator:
    """Tests for the @traced decorator."""

    def test_creates_span_named_after_function(self, mock_tracer: MagicMock) -> None:
        """Test the span name defaults to the function name."""

        @traced
        def my_function() -> str:
            return "result"

        assert my_function() == "result"
        assert mock_tracer.start_as_current_span.call_args[0][0] == "my_function"
        _span(mock_tracer).set_attribute.assert_any_call(OPERATION_ATTRIBUTE, "my_function")

    def test_custom_operation_name(self, mock_tracer: MagicMock) -> None:
        """Test a custom span name can be given."""

        @traced(operation_name="custom_operation")
        def my_function() -> None:
            pass

        my_function()
        assert mock_tracer.start_as_current_span.call_args[0][0] == "custom_operation"

    def test_static_and_dynamic_attributes(self, mock_tracer: MagicMock) -> None:
        """Test static and argument-derived attributes are set."""

        @traced(
            attributes={"component": "deletes"},
            attributes_fn=lambda name: {"file.name": name},
        )
        def write(name: str) -> None:
            pass

        write("del.avro")
        span = _span(mock_tracer)
        span.set_attribute.assert_any_call("component", "deletes")
        span.set_attribute.assert_any_call("file.name", "del.avro")

    def test_failing_attributes_fn_is_ignored(self, mock_tracer: MagicMock) -> None:
        """Test attribute extraction errors do not fail the call."""

        def broken(*args: object) -> dict[str, object]:
            raise RuntimeError("boom")

        @traced(attributes_fn=broken)
        def operation() -> int:
            return 1

        assert operation() == 1

    def test_records_exception(self, mock_tracer: MagicMock) -> None:
        """Test exceptions are recorded, marked as errors and re-raised."""

        @traced
        def failing() -> None:
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            failing()

        span = _span(mock_tracer)
        span.record_exception.assert_called_once()
        status = span.set_status.call_args[0][0]
        assert status.status_code == StatusCode.ERROR

    def test_preserves_metadata(self) -> None:
        """Test functools.wraps keeps the wrapped function's name and docstring."""

        @traced
        def documented() -> None:
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."


# =============================================================================
# Builder Spans
# =============================================================================


class TestBuilderSpans:
    """Tests for spans around builder operations."""

    def test_build_span(self, mock_tracer: MagicMock, region_day_spec: PartitionSpec) -> None:
        """Test build() runs inside a span carrying spec attributes."""
        (
            delete_file_builder(region_day_spec)
            .set_content_position_deletes()
            .set_location("s3://b/del.parquet")
            .set_file_size_in_bytes(1)
            .set_record_count(1)
            .build()
        )

        assert mock_tracer.start_as_current_span.call_args[0][0] == "floe.deletes.build"
        span = _span(mock_tracer)
        span.set_attribute.assert_any_call("delete_file.spec_id", 2)
        span.set_attribute.assert_any_call("delete_file.partitioned", True)

    def test_rejected_build_marks_span(
        self, mock_tracer: MagicMock, unpartitioned_spec: PartitionSpec
    ) -> None:
        """Test validation failures are recorded on the build span."""
        with pytest.raises(ValidationError):
            delete_file_builder(unpartitioned_spec).build()

        span = _span(mock_tracer)
        span.record_exception.assert_called_once()
        assert span.set_status.call_args[0][0].status_code == StatusCode.ERROR


# =============================================================================
# Tracer Cache Tests
# =============================================================================


class TestGetTracer:
    """Tests for the cached tracer accessor."""

    def test_cached(self) -> None:
        """Test repeated calls return the same tracer."""
        assert get_tracer() is get_tracer()

    def test_falls_back_to_noop(self) -> None:
        """Test a failing global provider yields a NoOpTracer."""
        with patch(
            "floe_deletes.telemetry.trace.get_tracer", side_effect=RuntimeError("corrupt")
        ):
            assert isinstance(get_tracer("floe-deletes-broken"), NoOpTracer)
