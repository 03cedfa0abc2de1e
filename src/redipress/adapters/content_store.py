"""Content store abstractions and implementations.

The content store is the system of record the index mirrors. The pipeline only
reads from it: it enumerates every entity for bulk reindexing and looks up
authors while converting.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
import logging
import threading

from redipress.domain.model import Author, ContentEntity


logger = logging.getLogger(__name__)


class AbstractContentStore(ABC):
    """Abstract read-only access to content entities and their authors."""

    @abstractmethod
    def enumerate_all(self) -> Sequence[ContentEntity]:
        """Return every entity regardless of status or type."""
        raise NotImplementedError

    @abstractmethod
    def get_author(self, author_id: int) -> Author | None:
        """Return the author record, or None when it does not exist."""
        raise NotImplementedError

    def count(self) -> int:
        """Number of entities a full reindex would visit."""
        return len(self.enumerate_all())


class InMemoryContentStore(AbstractContentStore):
    """Dict-backed store keyed by entity id and author id."""

    def __init__(
        self,
        entities: Iterable[ContentEntity] = (),
        authors: Iterable[Author] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._entities: dict[int | None, ContentEntity] = {}
        self._authors: dict[int, Author] = {}
        self._anonymous: list[ContentEntity] = []
        for entity in entities:
            self.put(entity)
        for author in authors:
            self.put_author(author)

    def put(self, entity: ContentEntity) -> None:
        """Insert or replace an entity. Entities without an id are kept in arrival order."""
        with self._lock:
            if entity.id is None:
                self._anonymous.append(entity)
            else:
                self._entities[entity.id] = entity

    def put_author(self, author: Author) -> None:
        with self._lock:
            self._authors[author.id] = author

    def remove(self, entity_id: int) -> ContentEntity | None:
        with self._lock:
            return self._entities.pop(entity_id, None)

    def get(self, entity_id: int) -> ContentEntity | None:
        return self._entities.get(entity_id)

    def enumerate_all(self) -> list[ContentEntity]:
        with self._lock:
            return [*self._entities.values(), *self._anonymous]

    def get_author(self, author_id: int) -> Author | None:
        author = self._authors.get(author_id)
        if author is None:
            logger.debug("Author %s not found", author_id)
        return author
