"""RediPress: keep a RediSearch index in sync with a content store."""

from redipress.bootstrap import build_index_manager, configure_observability
from redipress.config import IndexConfig, Settings
from redipress.domain.model import Author, ContentEntity
from redipress.search.hooks import IndexEventSink, IndexHooks
from redipress.search.index_manager import IndexManager


__all__ = [
    "Author",
    "ContentEntity",
    "IndexConfig",
    "IndexEventSink",
    "IndexHooks",
    "IndexManager",
    "Settings",
    "build_index_manager",
    "configure_observability",
]
