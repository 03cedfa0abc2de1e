"""OpenTelemetry spans around index operations."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider

from redipress.observability.context import bind_log_context


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

TRACER_NAME = "redipress"


def init_tracing(
    service_name: str = "redipress",
    *,
    span_processors: Iterable[SpanProcessor] = (),
) -> TracerProvider:
    """Install an SDK tracer provider; exporters are attached as span processors."""
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in span_processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    logger.info("Tracing initialized for service: %s", service_name)
    return provider


def get_tracer() -> Tracer:
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def operation_span(operation: str, index_name: str, *, document_id: Any = None) -> Iterator[Span]:
    """Trace one index operation and bind its identity to the log context.

    The span is named ``redipress.<operation>``. Every record logged inside
    the block carries ``index``, ``operation`` and, when given,
    ``document_id``, plus the trace and span ids of a recording span.
    Exceptions mark the span as failed and propagate.
    """
    attributes: dict[str, Any] = {"redipress.operation": operation, "redipress.index": index_name}
    if document_id is not None:
        attributes["redipress.document_id"] = str(document_id)

    with get_tracer().start_as_current_span(f"redipress.{operation}", attributes=attributes) as span:
        span_context = span.get_span_context()
        ids: dict[str, str] = {}
        if span_context.is_valid:
            ids = {"trace_id": format(span_context.trace_id, "032x"), "span_id": format(span_context.span_id, "016x")}
        with bind_log_context(index=index_name, operation=operation, document_id=document_id, **ids):
            yield span
