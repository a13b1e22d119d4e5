"""
Observability for the context router.

Wraps the OpenTelemetry API so tool handlers and the JSON-RPC façade can
open spans and attach events without caring whether tracing is enabled.
Exporters are configured outside the process, e.g.:

    opentelemetry-instrument python -m context_mcp.main
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from loguru import logger
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode


class ObservabilityManager:
    """Span and event helpers bound to a single tracer."""

    def __init__(
        self,
        service_name: str = "context-router-mcp",
        enabled: bool = True,
    ) -> None:
        self.service_name = service_name
        self.enabled = enabled
        self._tracer = None

        if self.enabled:
            self._tracer = trace.get_tracer(
                instrumenting_module_name=service_name,
                tracer_provider=trace.get_tracer_provider(),
            )
            logger.info(f"Observability initialized for service: {service_name}")
        else:
            logger.info("Observability disabled")

    # ------------------------------------------------------------------
    # Span creation
    # ------------------------------------------------------------------

    @contextmanager
    def create_span(
        self,
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Optional[dict[str, Any]] = None,
    ) -> Iterator[Any]:
        """
        Create a span for a tool call or dispatch step.

        Args:
            name: Span name (e.g. "context.tool.create_system_location").
            kind: SpanKind (defaults to INTERNAL).
            attributes: Custom attributes to attach.
        """
        if not self.enabled or self._tracer is None:
            yield None
            return

        with self._tracer.start_as_current_span(
            name=name,
            kind=kind,
            attributes=attributes or {},
        ) as span:
            try:
                yield span
            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise

    def add_span_event(
        self,
        name: str,
        attributes: Optional[dict[str, Any]] = None,
    ) -> None:
        """Add an event to the current span."""
        if not self.enabled:
            return
        current_span = trace.get_current_span()
        if current_span.is_recording():
            current_span.add_event(name, attributes=attributes or {})

    def record_handler_result(
        self,
        handler_name: str,
        handler_type: str,
        duration_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        """Record a handler completion as a span event with standard attributes."""
        attributes: dict[str, Any] = {
            "context.handler.name": handler_name,
            "context.handler.type": handler_type,
            "context.handler.duration_ms": duration_ms,
            "context.handler.success": success,
        }
        if error:
            attributes["context.handler.error"] = error
        self.add_span_event(f"{handler_type}.{handler_name}", attributes)


# ------------------------------------------------------------------
# Singleton
# ------------------------------------------------------------------

_observability_manager: ObservabilityManager | None = None


def get_observability_manager() -> ObservabilityManager:
    """Return the global ObservabilityManager singleton (lazy-init)."""
    global _observability_manager

    if _observability_manager is None:
        from context_mcp.config import settings

        _observability_manager = ObservabilityManager(
            service_name=settings.OTEL_SERVICE_NAME,
            enabled=settings.AGENT_OBSERVABILITY_ENABLED,
        )

    return _observability_manager


def initialize_observability(
    service_name: str = "context-router-mcp",
    enabled: bool = True,
) -> ObservabilityManager:
    """Initialize the global observability manager at startup."""
    global _observability_manager

    _observability_manager = ObservabilityManager(
        service_name=service_name,
        enabled=enabled,
    )

    return _observability_manager
