"""OpenTelemetry instrumentation for floe-deletes operations.

This module provides the @traced decorator for automatic span creation
around DeleteFileBuilder operations, plus a thread-safe tracer cache.
Supports custom span names, static and dynamic attributes, and exception
recording.

Uses the OpenTelemetry API (tracer from the global TracerProvider) for
compatibility with any OTLP-compliant backend.

Example:
    >>> from floe_deletes.telemetry import traced
    >>>
    >>> @traced(operation_name="deletes.build")
    ... def build(self) -> DeleteFile:
    ...     ...

Attributes:
    TRACER_NAME: Instrumentation library name for OpenTelemetry.
"""

from __future__ import annotations

import functools
import threading
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar, overload

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode, Tracer

if TYPE_CHECKING:
    from collections.abc import Callable

# Type variables for generic decorator typing
P = ParamSpec("P")
R = TypeVar("R")

# =============================================================================
# Constants
# =============================================================================

TRACER_NAME = "floe-deletes"
"""OpenTelemetry instrumentation library name."""

OPERATION_ATTRIBUTE = "floe.deletes.operation"
"""Span attribute holding the decorated function's name."""

# Module-level state for thread-safe tracer management
_tracers: dict[str, Tracer] = {}
_tracer_init_failed: bool = False
_lock = threading.Lock()


# =============================================================================
# Tracer Access
# =============================================================================


def get_tracer(name: str = TRACER_NAME) -> Tracer:
    """Get or create a cached tracer from the global TracerProvider.

    Uses double-checked locking for lazy initialization. Returns a
    NoOpTracer if OpenTelemetry initialization fails (e.g., due to
    corrupted global state from test fixtures).

    Args:
        name: Instrumentation library name. Defaults to TRACER_NAME.

    Returns:
        OpenTelemetry Tracer instance.
    """
    global _tracer_init_failed

    if name in _tracers:
        return _tracers[name]

    if _tracer_init_failed:
        return trace.NoOpTracer()

    with _lock:
        if name in _tracers:
            return _tracers[name]

        if _tracer_init_failed:
            return trace.NoOpTracer()

        try:
            tracer = trace.get_tracer(name)
        except Exception:
            _tracer_init_failed = True
            return trace.NoOpTracer()
        _tracers[name] = tracer
        return tracer


def reset_tracer() -> None:
    """Reset tracer state for test isolation.

    Example:
        >>> @pytest.fixture(autouse=True)
        ... def reset_otel():
        ...     reset_tracer()
        ...     yield
        ...     reset_tracer()
    """
    global _tracer_init_failed
    with _lock:
        _tracers.clear()
        _tracer_init_failed = False


# =============================================================================
# Traced Decorator
# =============================================================================


@overload
def traced(
    func: Callable[P, R],
    *,
    operation_name: str | None = ...,
    attributes: dict[str, Any] | None = ...,
    attributes_fn: Callable[..., dict[str, Any]] | None = ...,
) -> Callable[P, R]: ...


@overload
def traced(
    func: None = ...,
    *,
    operation_name: str | None = ...,
    attributes: dict[str, Any] | None = ...,
    attributes_fn: Callable[..., dict[str, Any]] | None = ...,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def traced(
    func: Callable[P, R] | None = None,
    *,
    operation_name: str | None = None,
    attributes: dict[str, Any] | None = None,
    attributes_fn: Callable[..., dict[str, Any]] | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to create OpenTelemetry spans for functions.

    Can be used with or without parentheses:
        @traced
        def my_function(): ...

        @traced(operation_name="custom_name")
        def my_function(): ...

    Args:
        func: The function to decorate (when used without parentheses).
        operation_name: Custom span name. Defaults to function name.
        attributes: Static attributes to add to the span.
        attributes_fn: Callable receiving the decorated function's
            arguments and returning an attributes dict.

    Returns:
        Decorated function that creates a span on each call.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            tracer = get_tracer()
            span_name = operation_name or fn.__name__

            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute(OPERATION_ATTRIBUTE, fn.__name__)

                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)

                if attributes_fn:
                    try:
                        dynamic_attrs = attributes_fn(*args, **kwargs)
                    except Exception:
                        # Attribute extraction never fails the operation
                        dynamic_attrs = {}
                    for key, value in dynamic_attrs.items():
                        span.set_attribute(key, value)

                try:
                    return fn(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


__all__ = [
    "OPERATION_ATTRIBUTE",
    "TRACER_NAME",
    "get_tracer",
    "reset_tracer",
    "traced",
]
