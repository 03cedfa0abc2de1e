"""Durability checkpoints after index mutations."""

from __future__ import annotations

import logging

from redipress.adapters.engine import SAVE, CommandExecutor
from redipress.config import IndexConfig
from redipress.errors import EngineError, TransportError
from redipress.observability.metrics import PERSISTENCE_CHECKPOINTS
from redipress.search.hooks import IndexHooks
from redipress.search.results import OperationResult


logger = logging.getLogger(__name__)


class PersistenceTrigger:
    """Decide whether a mutation is followed by a ``SAVE`` and issue it.

    The ``write_to_disk`` filter wins when it returns a boolean; otherwise
    the ``persist_index`` setting decides. A failed save is reported and
    never undoes or retries the mutation that preceded it.
    """

    def __init__(self, executor: CommandExecutor, config: IndexConfig, hooks: IndexHooks | None = None) -> None:
        self._executor = executor
        self._config = config
        self._hooks = hooks or IndexHooks()

    def should_persist(self, event: str) -> bool:
        override = self._hooks.write_to_disk(event)
        if override is not None:
            return bool(override)
        return self._config.persist_index

    def maybe_persist(self, event: str) -> OperationResult | None:
        """Checkpoint after ``event`` when configured to; return None when skipped."""
        if not self.should_persist(event):
            return None
        return self.persist(event)

    def persist(self, event: str = "manual") -> OperationResult:
        """Issue a synchronous ``SAVE``."""
        try:
            response = self._executor.execute(SAVE, [])
        except (EngineError, TransportError) as exc:
            logger.warning("Persisting index after %s failed: %s", event, exc)
            PERSISTENCE_CHECKPOINTS.labels(event=event, status="error").inc()
            return OperationResult(operation="save", error=exc, response=None)

        PERSISTENCE_CHECKPOINTS.labels(event=event, status="ok").inc()
        logger.debug("Index persisted after %s", event)
        return OperationResult(operation="save", response=response)
