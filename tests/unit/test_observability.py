"""Unit tests for observability module."""

import io
import json
import logging
import sys

from opentelemetry import trace as trace_api
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY
import pytest

from redipress.adapters.content_store import InMemoryContentStore
from redipress.adapters.engine import ADD, FakeCommandExecutor
from redipress.config import IndexConfig
from redipress.domain.model import ContentEntity
from redipress.errors import EngineError
from redipress.observability import (
    ENGINE_COMMAND_LATENCY,
    JsonFormatter,
    bind_log_context,
    configure_logging,
    get_log_context,
    init_metrics,
    init_tracing,
    metrics as metrics_module,
    operation_span,
    track_latency,
)
from redipress.search.index_manager import IndexManager


def _record(msg: str = "test message", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="redipress.search.index_manager",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def _setup_exporter() -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    provider = trace_api.get_tracer_provider()
    if not isinstance(provider, TracerProvider):
        provider = init_tracing("test-service")
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def json_logs():
    """Capture ``redipress`` records as parsed JSON entries."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger("redipress")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield lambda: [json.loads(line) for line in stream.getvalue().splitlines()]

    logger.removeHandler(handler)
    logger.setLevel(previous_level)


class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_bound_context(self):
        with bind_log_context(index="posts", operation="upsert", document_id=42):
            data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "redipress.search.index_manager"
        assert data["index"] == "posts"
        assert data["operation"] == "upsert"
        assert data["document_id"] == 42
        assert "timestamp" in data

    def test_format_without_context(self):
        data = json.loads(JsonFormatter().format(_record()))

        assert "index" not in data
        assert "trace_id" not in data

    def test_format_includes_extra_fields(self):
        record = _record()
        record.command = "FT.ADD"

        data = json.loads(JsonFormatter().format(record))

        assert data["command"] == "FT.ADD"

    def test_format_truncates_and_redacts(self):
        record = _record("x" * 3000)
        record.redis_password = "hunter2"
        record.Authorization = "Bearer token"

        data = json.loads(JsonFormatter().format(record))

        assert data["message"].endswith("...")
        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["redis_password"] == "[REDACTED]"
        assert data["Authorization"] == "[REDACTED]"

    def test_json_default_handles_sets_and_bytes(self):
        record = _record()
        record.tags = {"b", "a"}
        record.raw = b"bytes"
        record.config = IndexConfig("posts")

        data = json.loads(JsonFormatter().format(record))

        assert data["tags"] == ["a", "b"]
        assert data["raw"] == "bytes"
        assert "posts" in data["config"]

    def test_format_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("redipress", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestLogContext:
    def test_bindings_nest_and_reset(self):
        with bind_log_context(index="posts", operation="index_all"):
            with bind_log_context(document_id=3) as inner:
                assert inner == {"index": "posts", "operation": "index_all", "document_id": 3}
                assert get_log_context() == inner
            assert get_log_context() == {"index": "posts", "operation": "index_all"}

        assert get_log_context() == {}

    def test_none_values_are_not_bound(self):
        with bind_log_context(index="posts", document_id=None):
            assert get_log_context() == {"index": "posts"}

    def test_returned_context_is_a_copy(self):
        with bind_log_context(index="posts"):
            get_log_context()["index"] = "pages"

            assert get_log_context() == {"index": "posts"}

    def test_context_is_reset_after_error(self):
        with pytest.raises(ValueError):
            with bind_log_context(index="posts"):
                raise ValueError("boom")

        assert get_log_context() == {}


class TestTracing:
    def test_operation_span_records_attributes(self):
        exporter = _setup_exporter()

        with operation_span("upsert", "posts", document_id=42) as span:
            assert span is not None

        (finished,) = exporter.get_finished_spans()
        assert finished.name == "redipress.upsert"
        assert finished.attributes["redipress.operation"] == "upsert"
        assert finished.attributes["redipress.index"] == "posts"
        assert finished.attributes["redipress.document_id"] == "42"

    def test_operation_span_binds_trace_ids_to_log_context(self):
        _setup_exporter()

        with operation_span("create", "posts") as span:
            context = get_log_context()
            span_context = span.get_span_context()

        assert context["index"] == "posts"
        assert context["operation"] == "create"
        assert "document_id" not in context
        assert context["trace_id"] == format(span_context.trace_id, "032x")
        assert context["span_id"] == format(span_context.span_id, "016x")
        assert get_log_context() == {}

    def test_operation_span_marks_errors(self):
        exporter = _setup_exporter()

        with pytest.raises(ValueError, match="boom"):
            with operation_span("drop", "posts"):
                raise ValueError("boom")

        (finished,) = exporter.get_finished_spans()
        assert finished.status.status_code == StatusCode.ERROR
        assert get_log_context() == {}

    def test_index_manager_operations_are_traced(self):
        exporter = _setup_exporter()
        executor = FakeCommandExecutor()
        store = InMemoryContentStore(entities=[ContentEntity(id=1, status="publish")])
        manager = IndexManager(executor, IndexConfig("posts"), store)

        manager.create()
        manager.upsert(ContentEntity(id=1, status="publish"))
        manager.delete(1)
        manager.index_all()
        manager.drop()

        spans = exporter.get_finished_spans()
        assert [span.name for span in spans] == [
            "redipress.create",
            "redipress.upsert",
            "redipress.delete",
            "redipress.index_all",
            "redipress.drop",
        ]
        assert {span.attributes["redipress.index"] for span in spans} == {"posts"}
        assert spans[3].attributes["redipress.entities"] == 1


class TestIndexManagerLogs:
    """Records logged by index operations carry the operation identity."""

    def test_upsert_logs_carry_index_and_document(self, json_logs):
        manager = IndexManager(FakeCommandExecutor(), IndexConfig("posts"), InMemoryContentStore())
        manager.create()

        manager.upsert(ContentEntity(id=9, status="draft"))

        (entry,) = [e for e in json_logs() if e["message"] == "Document 9 was not in index posts"]
        assert entry["index"] == "posts"
        assert entry["operation"] == "upsert"
        assert entry["document_id"] == 9

    def test_create_logs_carry_index(self, json_logs):
        manager = IndexManager(FakeCommandExecutor(), IndexConfig("pages"), InMemoryContentStore())

        manager.create()

        (entry,) = [e for e in json_logs() if e["message"].startswith("Created index")]
        assert entry["index"] == "pages"
        assert entry["operation"] == "create"
        assert "document_id" not in entry

    @pytest.mark.parametrize("workers", [1, 3])
    def test_index_all_failures_carry_document_id(self, json_logs, workers):
        executor = FakeCommandExecutor()
        store = InMemoryContentStore(entities=[ContentEntity(id=i, status="publish") for i in (1, 2, 3)])
        manager = IndexManager(executor, IndexConfig("posts"), store, index_all_workers=workers)
        manager.create()
        executor.failures[ADD] = EngineError("OOM", command=ADD)

        manager.index_all()

        failures = [e for e in json_logs() if e["message"].startswith("Failed to index entity")]
        assert sorted(e["document_id"] for e in failures) == [1, 2, 3]
        for entry in failures:
            assert entry["message"] == f"Failed to index entity {entry['document_id']}: OOM"
            assert entry["index"] == "posts"
            assert entry["operation"] == "index_all"
            assert entry["level"] == "WARNING"

        (summary,) = [e for e in json_logs() if e["message"].startswith("Reindex of posts finished")]
        assert "document_id" not in summary


class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_init_metrics_creates_provider(self):
        assert isinstance(init_metrics("test-service"), MeterProvider)

    def test_failed_bulk_entities_are_counted(self):
        before = _sample("redipress_document_operations_total", operation="add", status="failed")
        executor = FakeCommandExecutor()
        store = InMemoryContentStore(entities=[ContentEntity(id=1, status="publish")])
        manager = IndexManager(executor, IndexConfig("posts"), store)
        manager.create()
        executor.failures[ADD] = EngineError("OOM", command=ADD)

        manager.index_all()

        assert _sample("redipress_document_operations_total", operation="add", status="failed") == before + 1

    def test_track_latency_records_histogram(self):
        before = _sample("redipress_engine_command_latency_seconds_count", command="FT.INFO")

        with track_latency(ENGINE_COMMAND_LATENCY, command="FT.INFO"):
            pass

        assert _sample("redipress_engine_command_latency_seconds_count", command="FT.INFO") == before + 1

    def test_metric_bridge_unknown_kind_raises(self):
        bridge = metrics_module.MetricBridge(
            metrics_module._DOCUMENT_OPERATIONS_PROM,
            otel_name="bad",
            otel_description="bad",
            otel_kind="summary",
        )

        with pytest.raises(ValueError, match="Unknown metric kind"):
            bridge.labels(operation="add", status="ok").inc()


class TestConfigureLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_configure_logging_sets_level(self):
        configure_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_json_formatter(self):
        handler = configure_logging(level="INFO")

        assert logging.getLogger().handlers == [handler]
        assert isinstance(handler.formatter, JsonFormatter)

    def test_configure_logging_non_json_formatter(self):
        configure_logging(level="INFO", json_output=False)

        assert not isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_configure_logging_quiets_redis_and_applies_overrides(self):
        configure_logging(level="DEBUG", logger_levels={"redipress.adapters": "error"})

        assert logging.getLogger("redis").level == logging.WARNING
        assert logging.getLogger("redipress.adapters").level == logging.ERROR
