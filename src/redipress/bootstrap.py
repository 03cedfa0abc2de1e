"""Wiring of settings, engine client and content store into an index manager."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from redipress.adapters.engine import CommandExecutor, RedisCommandExecutor
from redipress.config import Settings
from redipress.observability import configure_logging, init_metrics, init_tracing
from redipress.search.converter import DocumentConverter
from redipress.search.hooks import IndexHooks
from redipress.search.index_manager import IndexManager


if TYPE_CHECKING:
    import redis

    from redipress.adapters.content_store import AbstractContentStore


logger = logging.getLogger(__name__)


def configure_observability(settings: Settings, *, service_name: str = "redipress") -> None:
    """Install logging, tracing and metrics according to ``settings``."""
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_tracing(service_name=service_name)
    init_metrics(service_name=service_name)


def build_index_manager(
    settings: Settings,
    content_store: AbstractContentStore,
    *,
    hooks: IndexHooks | None = None,
    client: redis.Redis | None = None,
    executor: CommandExecutor | None = None,
) -> IndexManager:
    """Build an :class:`IndexManager` for ``settings``.

    A ``redis.Redis`` client is created from the connection settings unless
    ``client`` is given. Passing ``executor`` bypasses the client entirely.
    """
    if executor is None:
        executor = RedisCommandExecutor(client) if client is not None else RedisCommandExecutor.from_settings(settings)

    hooks = hooks or IndexHooks()
    config = settings.index_config()
    logger.debug(
        "Building index manager for %s (persist=%s, language=%s)",
        config.index_name,
        config.persist_index,
        config.language,
    )
    return IndexManager(
        executor,
        config,
        content_store,
        converter=DocumentConverter(content_store, hooks),
        hooks=hooks,
        index_all_workers=settings.index_all_workers,
    )
