"""Conversion of content entities into flat index documents.

A document is an ordered ``field -> value`` mapping. The order is part of the
contract: author-derived fields come first, followed by the remaining fields
in a fixed order, and the flattened ``key, value, key, value`` sequence sent
to the engine preserves it.

Conversion never fails a bulk reindex on bad data: anything except a
missing entity id degrades to an empty or omitted value instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
import logging
import re
from typing import Any

from bs4 import BeautifulSoup
import orjson

from redipress.adapters.content_store import AbstractContentStore
from redipress.domain.model import ContentEntity
from redipress.errors import ConversionError
from redipress.search.hooks import IndexHooks


logger = logging.getLogger(__name__)

Document = dict[str, Any]

_WHITESPACE_RUN = re.compile(r"[\r\n\t ]+")
_UNRENDERED_TAGS = ("script", "style")


class DocumentConverter:
    """Build index documents from content entities."""

    def __init__(self, content_store: AbstractContentStore, hooks: IndexHooks | None = None) -> None:
        self._content_store = content_store
        self._hooks = hooks or IndexHooks()

    def convert(self, entity: ContentEntity) -> Document:
        """Convert ``entity`` into a document.

        Raises:
            ConversionError: The entity has no id.
        """
        if entity.id is None:
            raise ConversionError(f"Cannot convert entity without an id: {entity.title!r}")

        document: Document = {
            "post_author": self._resolve_author(entity),
            "post_date": to_timestamp(entity.post_date),
        }
        document.update(
            {
                "post_id": int(entity.id),
                "post_title": entity.title or "",
                "post_author_id": int(entity.author_id or 0),
                "post_excerpt": entity.excerpt or "",
                "post_content": strip_all_tags(entity.content),
                "post_type": entity.post_type or "",
                "post_object": serialize_entity(entity),
                "permalink": entity.permalink or "",
                "menu_order": max(int(entity.menu_order or 0), 0),
                "search_index": self._hooks.search_index(entity),
            }
        )
        return document

    def _resolve_author(self, entity: ContentEntity) -> str:
        field_name = self._hooks.author_field()
        author = self._content_store.get_author(entity.author_id)
        value = author.get(field_name) if author is not None else None
        if value is None:
            if author is not None:
                logger.debug("Author %s has no '%s' attribute", entity.author_id, field_name)
            value = ""
        return self._hooks.filter_post_author(str(value), entity)


def flatten_document(document: Mapping[str, Any]) -> list[Any]:
    """Flatten a document into ``key1, value1, key2, value2, ...``.

    ``None`` values are skipped because the engine has no null value.
    """
    flattened: list[Any] = []
    for key, value in document.items():
        if value is None:
            continue
        flattened.extend((key, value))
    return flattened


def strip_all_tags(markup: str | None) -> str:
    """Strip markup to plain text.

    ``<script>`` and ``<style>`` bodies are dropped entirely, remaining tags are
    removed and whitespace runs (including line breaks) collapse to a single
    space.
    """
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for element in soup(_UNRENDERED_TAGS):
        element.decompose()
    text = soup.get_text()
    return _WHITESPACE_RUN.sub(" ", text).strip()


def to_timestamp(value: datetime | str | None) -> int | None:
    """Parse a publish date into Unix epoch seconds.

    Naive values are treated as UTC. Returns None for empty, zero
    (``0000-00-00 00:00:00``) or otherwise unparsable dates. A trailing ``Z``
    means UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[-1] in "Zz":
            # fromisoformat only accepts the UTC designator from Python 3.11 on
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparsable post date %r", text)
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def serialize_entity(entity: ContentEntity) -> str:
    """Serialize a full snapshot of the entity for the stored-only ``post_object`` field."""
    return orjson.dumps(entity.to_dict(), default=str, option=orjson.OPT_SORT_KEYS).decode("utf-8")
