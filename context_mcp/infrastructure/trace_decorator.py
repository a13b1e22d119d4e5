"""
Trace decorator for tool handlers.

Usage:
    @locations_mcp.tool(...)
    @traced(span_name="context.tool.get_location")
    async def get_location(user_id: str, location_key: str) -> Location:
        ...

Arguments become span attributes (``context.tool.param.<name>``), truncated
so GraphQL documents do not bloat spans. Failures are logged and re-raised.
"""

from __future__ import annotations

import functools
import inspect
import time
from typing import Any, Callable

from loguru import logger

from context_mcp.infrastructure.observability import get_observability_manager

MAX_ATTRIBUTE_LENGTH = 256


def _attribute_value(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_ATTRIBUTE_LENGTH:
        return text[:MAX_ATTRIBUTE_LENGTH] + "..."
    return text


def traced(
    span_name: str,
    handler_type: str = "tool",
) -> Callable:
    """
    Decorator that wraps an async handler with an OpenTelemetry span.

    Args:
        span_name: The span name (e.g. "context.tool.get_location").
        handler_type: Handler kind recorded on the span (e.g. "tool").
    """

    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            observability = get_observability_manager()

            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()

            span_attributes: dict[str, Any] = {
                "context.handler.type": handler_type,
                "context.handler.name": func.__name__,
            }
            for param_name, param_value in bound.arguments.items():
                span_attributes[f"context.{handler_type}.param.{param_name}"] = _attribute_value(
                    param_value
                )

            start_time = time.monotonic()

            with observability.create_span(name=span_name, attributes=span_attributes):
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    duration_ms = (time.monotonic() - start_time) * 1000
                    observability.record_handler_result(
                        handler_name=func.__name__,
                        handler_type=handler_type,
                        duration_ms=round(duration_ms, 2),
                        success=False,
                        error=str(e),
                    )
                    logger.error(f"[trace] {span_name} failed after {duration_ms:.1f}ms: {e}")
                    raise

                duration_ms = (time.monotonic() - start_time) * 1000
                observability.record_handler_result(
                    handler_name=func.__name__,
                    handler_type=handler_type,
                    duration_ms=round(duration_ms, 2),
                    success=True,
                )
                logger.debug(f"[trace] {span_name} completed in {duration_ms:.1f}ms")
                return result

        return wrapper

    return decorator
