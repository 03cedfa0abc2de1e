"""Conftest for unit tests - automatically mark all tests as unit tests."""

from datetime import datetime, timezone

import pytest

from redipress.adapters.content_store import InMemoryContentStore
from redipress.adapters.engine import FakeCommandExecutor
from redipress.config import IndexConfig
from redipress.domain.model import Author, ContentEntity
from redipress.search.hooks import IndexHooks
from redipress.search.index_manager import IndexManager


def pytest_collection_modifyitems(config, items):
    """Automatically mark all tests in the unit directory as unit tests."""
    for item in items:
        # Add unit marker to all tests in the unit directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def executor():
    """Recording in-memory engine."""
    return FakeCommandExecutor()


@pytest.fixture
def index_config():
    return IndexConfig(index_name="posts")


@pytest.fixture
def hooks():
    return IndexHooks()


@pytest.fixture
def author():
    return Author(id=7, display_name="Jane Doe", user_login="jdoe", first_name="Jane", last_name="Doe")


@pytest.fixture
def published_entity():
    return ContentEntity(
        id=42,
        title="Hello",
        content="<p>Hello <strong>world</strong></p>",
        excerpt="Greeting",
        author_id=7,
        status="publish",
        post_date=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        permalink="https://example.com/hello/",
    )


@pytest.fixture
def content_store(author, published_entity):
    return InMemoryContentStore(entities=[published_entity], authors=[author])


@pytest.fixture
def manager(executor, index_config, content_store, hooks):
    """Index manager wired to the fake engine with the index already created."""
    manager = IndexManager(executor, index_config, content_store, hooks=hooks)
    manager.create()
    executor.calls.clear()
    return manager
