"""Unit tests for the in-memory content store."""

from __future__ import annotations

from redipress.adapters.content_store import InMemoryContentStore
from redipress.domain.model import Author, ContentEntity


def test_enumerates_every_status_and_type() -> None:
    entities = [
        ContentEntity(id=1, status="publish"),
        ContentEntity(id=2, status="draft"),
        ContentEntity(id=3, post_type="revision"),
    ]

    store = InMemoryContentStore(entities=entities)

    assert [entity.id for entity in store.enumerate_all()] == [1, 2, 3]
    assert store.count() == 3


def test_put_replaces_by_id() -> None:
    store = InMemoryContentStore(entities=[ContentEntity(id=1, title="Old")])

    store.put(ContentEntity(id=1, title="New"))

    assert store.count() == 1
    assert store.get(1).title == "New"


def test_entities_without_id_are_kept() -> None:
    store = InMemoryContentStore(entities=[ContentEntity(title="a"), ContentEntity(id=1), ContentEntity(title="b")])

    assert [entity.title for entity in store.enumerate_all()] == ["", "a", "b"]


def test_remove() -> None:
    store = InMemoryContentStore(entities=[ContentEntity(id=1)])

    assert store.remove(1).id == 1
    assert store.remove(1) is None
    assert store.enumerate_all() == []


def test_author_lookup() -> None:
    store = InMemoryContentStore(authors=[Author(id=3, display_name="Ann")])

    assert store.get_author(3).display_name == "Ann"
    assert store.get_author(4) is None
