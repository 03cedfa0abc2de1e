"""Identity of the index operation in progress, shared by spans and log records.

The context lives in a ``ContextVar`` so that it follows the call stack, and
bulk reindex workers inherit it through ``contextvars.copy_context()``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any


_EMPTY: MappingProxyType[str, Any] = MappingProxyType({})

_log_context: ContextVar[MappingProxyType[str, Any]] = ContextVar("redipress_log_context", default=_EMPTY)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the fields bound to the current operation."""
    return dict(_log_context.get())


@contextmanager
def bind_log_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """Bind ``fields`` for the duration of the block.

    Fields given as None are ignored; inner bindings override outer ones and
    are undone when the block exits.
    """
    merged = {**_log_context.get(), **{key: value for key, value in fields.items() if value is not None}}
    token = _log_context.set(MappingProxyType(merged))
    try:
        yield dict(merged)
    finally:
        _log_context.reset(token)
