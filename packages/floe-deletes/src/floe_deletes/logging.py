"""Structured logging setup with OpenTelemetry trace correlation.

Modules in this package log through ``structlog.get_logger(__name__)``
with snake_case event names and keyword context. This module injects the
active span's trace_id and span_id into every event and configures
structlog for JSON or console output.

The package never configures logging on import. A process that writes
delete manifests calls configure_logging() once at startup; the
``delete_file_built`` and ``delete_file_rejected`` events emitted inside
the builder's ``floe.deletes.build`` span then carry that span's IDs.

Example:
    >>> from floe_deletes import delete_file_builder
    >>> from floe_deletes.logging import configure_logging
    >>>
    >>> configure_logging(log_level="DEBUG")
    >>> builder = delete_file_builder(spec)
    >>> for status, record_count in written_delete_files:
    ...     manifest.append(
    ...         builder.set_content_position_deletes()
    ...         .set_location_from_file_status(status)
    ...         .set_record_count(record_count)
    ...         .build()
    ...     )
    ...     builder.clear()
    {"event": "delete_file_built", "level": "debug", "trace_id": "...", ...}
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import INVALID_SPAN_ID, INVALID_TRACE_ID

# Type alias for structlog EventDict
EventDict = MutableMapping[str, Any]

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def add_trace_context(
    logger: Any,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Add trace context to structlog event dictionary.

    Args:
        logger: The logger instance (unused, required by structlog processor API).
        method_name: The log method name (unused).
        event_dict: The event dictionary to enrich with trace context.

    Returns:
        The event dictionary with trace_id and span_id added if a span is active.

    Example:
        A rejection logged by ``DeleteFileBuilder.build`` runs inside the
        ``floe.deletes.build`` span, so it can be joined to that trace:

        >>> add_trace_context(None, "warning", {"event": "delete_file_rejected"})
        {'event': 'delete_file_rejected', 'trace_id': '4bf9...', 'span_id': '00f0...'}
    """
    ctx = trace.get_current_span().get_span_context()

    if ctx.trace_id != INVALID_TRACE_ID and ctx.span_id != INVALID_SPAN_ID:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")

    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Configure structlog with trace context injection.

    Args:
        log_level: Minimum level to emit (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, render JSON lines. If False, use the console renderer.

    Raises:
        ValueError: If log_level is not a known level name.

    Examples:
        >>> configure_logging(log_level="DEBUG", json_output=False)
        >>> structlog.get_logger().debug("delete_file_built")
    """
    level_name = log_level.upper()
    if level_name not in _LOG_LEVELS:
        msg = f"Invalid log level: {log_level}. Expected one of {', '.join(_LOG_LEVELS)}"
        raise ValueError(msg)

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_trace_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        cache_logger_on_first_use=False,
    )


__all__ = [
    "add_trace_context",
    "configure_logging",
]
