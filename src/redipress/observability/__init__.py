"""Observability for the indexing pipeline: JSON logs, OpenTelemetry spans and Prometheus metrics."""

from redipress.observability.context import bind_log_context, get_log_context
from redipress.observability.logging import JsonFormatter, configure_logging
from redipress.observability.metrics import (
    DOCUMENT_OPERATIONS,
    ENGINE_COMMAND_LATENCY,
    ENGINE_COMMANDS,
    INDEX_DOC_COUNT,
    PERSISTENCE_CHECKPOINTS,
    init_metrics,
    track_latency,
)
from redipress.observability.tracing import get_tracer, init_tracing, operation_span


__all__ = [
    "DOCUMENT_OPERATIONS",
    "ENGINE_COMMANDS",
    "ENGINE_COMMAND_LATENCY",
    "INDEX_DOC_COUNT",
    "PERSISTENCE_CHECKPOINTS",
    "JsonFormatter",
    "bind_log_context",
    "configure_logging",
    "get_log_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "operation_span",
    "track_latency",
]
