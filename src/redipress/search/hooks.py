"""Extension points for the indexing pipeline.

Two kinds of hooks are offered:

- **Filters** transform a value at a fixed pipeline stage. Every registered
  filter runs once, in registration order, receiving the previous filter's
  output. The pipeline uses the final value.
- **Event sinks** observe finished operations. They are fire-and-forget: their
  return values are ignored and a failing sink is logged without affecting
  the operation that emitted the event.

Filter stages:

=================  ==========================================  ===============
stage              signature                                   default
=================  ==========================================  ===============
schema_fields      ``(fields) -> fields``                      built-in fields
raw_schema         ``(args) -> args``                          schema args
post_author_field  ``(attribute) -> attribute``                ``display_name``
post_author        ``(author, entity) -> author``              resolved name
search_index       ``(text, entity) -> text``                  ``""``
write_to_disk      ``(decision, event) -> bool | None``        ``None``
=================  ==========================================  ===============
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from redipress.domain.model import ContentEntity
    from redipress.search.schema import SchemaField


logger = logging.getLogger(__name__)

SchemaFieldsFilter = Callable[[list["SchemaField"]], list["SchemaField"]]
RawSchemaFilter = Callable[[list[str]], list[str]]
AuthorFieldFilter = Callable[[str], str]
EntityTextFilter = Callable[[str, "ContentEntity"], str]
WriteToDiskFilter = Callable[[bool | None, str], bool | None]

DEFAULT_AUTHOR_FIELD = "display_name"

EVENT_SCHEMA_CREATED = "schema_created"
EVENT_INDEXED_ALL = "indexed_all"
EVENT_NEW_POST_ADDED = "new_post_added"
EVENT_POST_DELETED = "post_deleted"


class IndexEventSink:
    """Observer for pipeline events.

    Subclasses override only the events they care about.
    """

    def schema_created(self, response: Any, fields: Sequence[SchemaField], raw_schema: Sequence[str]) -> None:
        """Called after the create command returned."""

    def indexed_all(self, result: Any, entities: Sequence[ContentEntity]) -> None:
        """Called once after a bulk reindex with the aggregate result."""

    def new_post_added(self, result: Any, entity: ContentEntity) -> None:
        """Called after a published entity was added or replaced."""

    def post_deleted(self, document_id: int | str, response: Any) -> None:
        """Called after a delete command returned."""


class IndexHooks:
    """Typed registry of filters and event sinks."""

    def __init__(self) -> None:
        self._schema_fields: list[SchemaFieldsFilter] = []
        self._raw_schema: list[RawSchemaFilter] = []
        self._author_field: list[AuthorFieldFilter] = []
        self._post_author: list[EntityTextFilter] = []
        self._search_index: list[EntityTextFilter] = []
        self._write_to_disk: list[WriteToDiskFilter] = []
        self._sinks: list[IndexEventSink] = []

    # --- registration -----------------------------------------------------

    def add_schema_fields_filter(self, callback: SchemaFieldsFilter) -> SchemaFieldsFilter:
        self._schema_fields.append(callback)
        return callback

    def add_raw_schema_filter(self, callback: RawSchemaFilter) -> RawSchemaFilter:
        self._raw_schema.append(callback)
        return callback

    def add_author_field_filter(self, callback: AuthorFieldFilter) -> AuthorFieldFilter:
        self._author_field.append(callback)
        return callback

    def add_post_author_filter(self, callback: EntityTextFilter) -> EntityTextFilter:
        self._post_author.append(callback)
        return callback

    def add_search_index_filter(self, callback: EntityTextFilter) -> EntityTextFilter:
        self._search_index.append(callback)
        return callback

    def add_write_to_disk_filter(self, callback: WriteToDiskFilter) -> WriteToDiskFilter:
        self._write_to_disk.append(callback)
        return callback

    def subscribe(self, sink: IndexEventSink) -> IndexEventSink:
        self._sinks.append(sink)
        return sink

    # --- filter application -----------------------------------------------

    def filter_schema_fields(self, fields: list[SchemaField]) -> list[SchemaField]:
        for callback in self._schema_fields:
            fields = list(callback(fields))
        return fields

    def filter_raw_schema(self, args: list[str]) -> list[str]:
        for callback in self._raw_schema:
            args = list(callback(args))
        return args

    def author_field(self) -> str:
        field_name = DEFAULT_AUTHOR_FIELD
        for callback in self._author_field:
            field_name = callback(field_name)
        return field_name

    def filter_post_author(self, author: str, entity: ContentEntity) -> str:
        for callback in self._post_author:
            author = callback(author, entity)
        return author

    def search_index(self, entity: ContentEntity) -> str:
        text = ""
        for callback in self._search_index:
            text = callback(text, entity)
        return text

    def write_to_disk(self, event: str) -> bool | None:
        """Return the persistence override for ``event``, or None to defer to config."""
        decision: bool | None = None
        for callback in self._write_to_disk:
            decision = callback(decision, event)
        return decision

    # --- events -----------------------------------------------------------

    def emit(self, event: str, *args: Any) -> None:
        """Deliver ``event`` to every subscribed sink."""
        for sink in self._sinks:
            handler = getattr(sink, event, None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception:
                logger.exception("Event sink %s failed handling %s", type(sink).__name__, event)
