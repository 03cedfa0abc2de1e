"""Index lifecycle and document maintenance against RediSearch.

The manager holds no index state of its own: the engine is the source of
truth and every public method is one request/response exchange (plus an
optional ``SAVE`` checkpoint). Documents are keyed by entity id and always
written with ``REPLACE`` so that concurrent upserts of the same entity resolve
to last-write-wins at the engine without client-side locking.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
import contextvars
from dataclasses import replace
import logging
from typing import Any

from redipress.adapters.content_store import AbstractContentStore
from redipress.adapters.engine import ADD, CREATE, DEL, DROP, INFO, CommandExecutor, parse_info
from redipress.config import IndexConfig
from redipress.domain.model import ContentEntity
from redipress.errors import ConversionError, IndexNotFoundError, RediPressError
from redipress.observability.context import bind_log_context
from redipress.observability.metrics import DOCUMENT_OPERATIONS, INDEX_DOC_COUNT
from redipress.observability.tracing import operation_span
from redipress.search.converter import Document, DocumentConverter, flatten_document
from redipress.search.hooks import (
    EVENT_INDEXED_ALL,
    EVENT_NEW_POST_ADDED,
    EVENT_POST_DELETED,
    EVENT_SCHEMA_CREATED,
    IndexHooks,
)
from redipress.search.persistence import PersistenceTrigger
from redipress.search.results import BulkIndexResult, IndexProgress, OperationResult, OperationStatus
from redipress.search.schema import Schema, SchemaField, create_default_fields


logger = logging.getLogger(__name__)

_DEFAULT_SCORE = 1


class IndexManager:
    """Create, drop and maintain one RediSearch index of content entities."""

    def __init__(
        self,
        executor: CommandExecutor,
        config: IndexConfig,
        content_store: AbstractContentStore,
        *,
        converter: DocumentConverter | None = None,
        hooks: IndexHooks | None = None,
        index_all_workers: int = 1,
    ) -> None:
        if index_all_workers < 1:
            raise ValueError("index_all_workers must be >= 1")
        self._executor = executor
        self._config = config
        self._content_store = content_store
        self._hooks = hooks or IndexHooks()
        self._converter = converter or DocumentConverter(content_store, self._hooks)
        self._persistence = PersistenceTrigger(executor, config, self._hooks)
        self._index_all_workers = index_all_workers

    @property
    def index_name(self) -> str:
        return self._config.index_name

    @property
    def persistence(self) -> PersistenceTrigger:
        return self._persistence

    # --- index lifecycle --------------------------------------------------

    def build_schema(self) -> tuple[list[SchemaField], list[str]]:
        """Assemble the filtered field list and the raw create arguments.

        Raises:
            SchemaCreationError: A filter produced duplicate or invalid fields.
        """
        fields = self._hooks.filter_schema_fields(create_default_fields())
        schema = Schema(fields)
        raw_schema = self._hooks.filter_raw_schema(schema.to_command_args(self.index_name))
        return list(schema), raw_schema

    def create(self) -> OperationResult:
        """Create the index.

        Engine errors, including an already existing index, propagate as
        :class:`SchemaCreationError`. Nothing is dropped or retried.
        """
        with operation_span("create", self.index_name):
            fields, raw_schema = self.build_schema()
            response = self._executor.execute(CREATE, raw_schema)
            logger.info("Created index %s with %d fields", self.index_name, len(fields))

            self._hooks.emit(EVENT_SCHEMA_CREATED, response, fields, raw_schema)
            persisted = self._persistence.maybe_persist(EVENT_SCHEMA_CREATED)
            return OperationResult(operation="create", response=response, persisted=persisted)

    def drop(self) -> OperationResult:
        """Drop the index; a missing index is reported in the result, not raised."""
        with operation_span("drop", self.index_name):
            try:
                response = self._executor.execute(DROP, [self.index_name])
            except IndexNotFoundError as exc:
                logger.warning("Cannot drop index %s: %s", self.index_name, exc)
                return OperationResult(operation="drop", error=exc, status=OperationStatus.MISSING)

            logger.info("Dropped index %s", self.index_name)
            return OperationResult(operation="drop", response=response)

    # --- documents --------------------------------------------------------

    def upsert(self, entity: ContentEntity) -> OperationResult:
        """Bring the index in line with one entity.

        Revisions and autosaves are skipped. Unpublished entities are
        deleted so they never stay searchable. Published entities are
        converted and added with replace semantics.
        """
        with operation_span("upsert", self.index_name, document_id=entity.id):
            result = self._apply(entity, notify=True)
            if result.skipped:
                logger.debug("Skipped revision %s", entity.id)
                return result

            event = EVENT_NEW_POST_ADDED if result.operation == "add" else EVENT_POST_DELETED
            if event == EVENT_NEW_POST_ADDED:
                self._hooks.emit(EVENT_NEW_POST_ADDED, result, entity)
            return replace(result, persisted=self._persistence.maybe_persist(event))

    def delete(self, document_id: int | str) -> OperationResult:
        """Delete a document and its stored payload.

        Deleting an unknown document, or from a missing index, is non-fatal:
        the result carries status ``missing``.
        """
        with operation_span("delete", self.index_name, document_id=document_id):
            result = self._delete(document_id, notify=True)
            return replace(result, persisted=self._persistence.maybe_persist(EVENT_POST_DELETED))

    def add(self, document_id: int | str, document: Document) -> OperationResult:
        """Add or replace an already converted document."""
        args: list[Any] = [
            self.index_name,
            document_id,
            _DEFAULT_SCORE,
            "REPLACE",
            "LANGUAGE",
            self._config.language,
            "FIELDS",
            *flatten_document(document),
        ]
        response = self._executor.execute(ADD, args)
        DOCUMENT_OPERATIONS.labels(operation="add", status="ok").inc()
        return OperationResult(operation="add", document_id=document_id, response=response)

    def index_all(self) -> BulkIndexResult:
        """Reindex every entity the content store enumerates.

        Each entity goes through the same skip/delete/add decision as
        :meth:`upsert`. Failures are collected per entity and never abort
        the run. One ``indexed_all`` event and at most one checkpoint follow
        the whole run.
        """
        with operation_span("index_all", self.index_name) as span:
            entities = list(self._content_store.enumerate_all())
            span.set_attribute("redipress.entities", len(entities))
            logger.info("Reindexing %d entities into %s", len(entities), self.index_name)

            results = self._index_entities(entities)
            bulk = BulkIndexResult(results=tuple(results))
            logger.info(
                "Reindex of %s finished: %d indexed, %d deleted, %d skipped, %d failed",
                self.index_name,
                bulk.indexed,
                bulk.deleted,
                bulk.skipped,
                bulk.failed,
            )

            self._hooks.emit(EVENT_INDEXED_ALL, bulk, entities)
            return replace(bulk, persisted=self._persistence.maybe_persist(EVENT_INDEXED_ALL))

    # --- reporting --------------------------------------------------------

    def info(self) -> dict[str, Any]:
        """Return the parsed ``FT.INFO`` reply for the index."""
        return parse_info(self._executor.execute(INFO, [self.index_name]))

    def index_total(self) -> int:
        """Number of documents the engine reports for the index (0 when it does not exist)."""
        try:
            info = self.info()
        except IndexNotFoundError:
            logger.debug("Index %s does not exist; reporting 0 documents", self.index_name)
            return 0

        try:
            total = int(float(info.get("num_docs") or 0))
        except (TypeError, ValueError):
            logger.warning("Unexpected num_docs value %r for %s", info.get("num_docs"), self.index_name)
            total = 0
        INDEX_DOC_COUNT.labels(index=self.index_name).set(total)
        return total

    def progress(self) -> IndexProgress:
        """Documents indexed so far against the size of the content store."""
        return IndexProgress(indexed=self.index_total(), total=self._content_store.count())

    # --- internal helpers -------------------------------------------------

    def _apply(self, entity: ContentEntity, *, notify: bool) -> OperationResult:
        if entity.is_revision:
            return OperationResult(operation="skip", document_id=entity.id, status=OperationStatus.SKIPPED)

        if entity.id is None:
            raise ConversionError(f"Cannot index entity without an id: {entity.title!r}")

        if not entity.is_published:
            return self._delete(entity.id, notify=notify)

        document = self._converter.convert(entity)
        return self.add(entity.id, document)

    def _delete(self, document_id: int | str, *, notify: bool) -> OperationResult:
        try:
            response = self._executor.execute(DEL, [self.index_name, document_id, "DD"])
        except IndexNotFoundError as exc:
            logger.warning("Cannot delete %s from missing index %s", document_id, self.index_name)
            result = OperationResult(
                operation="delete", document_id=document_id, error=exc, status=OperationStatus.MISSING
            )
            response = None
        else:
            if _is_zero(response):
                logger.info("Document %s was not in index %s", document_id, self.index_name)
                status = OperationStatus.MISSING
            else:
                status = OperationStatus.OK
            result = OperationResult(operation="delete", document_id=document_id, response=response, status=status)

        DOCUMENT_OPERATIONS.labels(operation="delete", status=result.status.value).inc()
        if notify:
            self._hooks.emit(EVENT_POST_DELETED, document_id, response)
        return result

    def _index_entities(self, entities: Sequence[ContentEntity]) -> list[OperationResult]:
        if self._index_all_workers == 1 or len(entities) < 2:
            return [self._index_entity(entity) for entity in entities]

        with ThreadPoolExecutor(max_workers=self._index_all_workers) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, self._index_entity, entity) for entity in entities
            ]
            return [future.result() for future in futures]

    def _index_entity(self, entity: ContentEntity) -> OperationResult:
        # Per-entity failures of any origin are recorded, never raised
        with bind_log_context(document_id=entity.id):
            try:
                return self._apply(entity, notify=False)
            except RediPressError as exc:
                logger.warning("Failed to index entity %s: %s", entity.id, exc)
                error: Exception = exc
            except Exception as exc:
                logger.exception("Unexpected error indexing entity %s", entity.id)
                error = exc

        operation = "add" if entity.is_published else "delete"
        DOCUMENT_OPERATIONS.labels(operation=operation, status="failed").inc()
        return OperationResult(operation=operation, document_id=entity.id, error=error)


def _is_zero(response: Any) -> bool:
    return response == 0 or response == "0" or response == b"0"
