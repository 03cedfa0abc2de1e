"""Search engine command execution.

The pipeline talks to RediSearch exclusively through
:class:`CommandExecutor`. The production implementation wraps a
:class:`redis.Redis` client, times every command, and translates the
client's exceptions into the :mod:`redipress.errors` taxonomy so that callers
never need to import ``redis`` themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
import logging
from typing import TYPE_CHECKING, Any

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from redipress.errors import EngineError, IndexNotFoundError, SchemaCreationError, TransportError
from redipress.observability.metrics import ENGINE_COMMAND_LATENCY, ENGINE_COMMANDS, track_latency


if TYPE_CHECKING:
    from redipress.config import Settings


logger = logging.getLogger(__name__)

CREATE = "FT.CREATE"
DROP = "FT.DROP"
ADD = "FT.ADD"
DEL = "FT.DEL"
INFO = "FT.INFO"
SAVE = "SAVE"

_MISSING_INDEX_MARKERS = ("unknown index", "no such index", "index not found")
_EXISTING_INDEX_MARKERS = ("already exists",)


class CommandExecutor(ABC):
    """Abstract executor for raw search engine commands."""

    @abstractmethod
    def execute(self, command: str, args: Sequence[Any]) -> Any:
        """Run ``command`` with ``args`` and return the engine reply.

        Raises:
            TransportError: The engine could not be reached.
            SchemaCreationError: A schema create command was rejected.
            IndexNotFoundError: The command referenced a missing index.
            EngineError: Any other error reply.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release transport resources."""
        return


class RedisCommandExecutor(CommandExecutor):
    """Execute commands through a :class:`redis.Redis` client."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> RedisCommandExecutor:
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            db=settings.redis_db,
            decode_responses=True,
        )
        return cls(client)

    @property
    def client(self) -> redis.Redis:
        return self._client

    def execute(self, command: str, args: Sequence[Any]) -> Any:
        logger.debug("Executing %s with %d argument(s)", command, len(args))
        with track_latency(ENGINE_COMMAND_LATENCY, command=command):
            try:
                response = self._client.execute_command(command, *args)
            except ResponseError as exc:
                ENGINE_COMMANDS.labels(command=command, status="error").inc()
                raise classify_response_error(command, exc) from exc
            except (RedisConnectionError, RedisTimeoutError) as exc:
                ENGINE_COMMANDS.labels(command=command, status="transport_error").inc()
                raise TransportError(f"{command} failed: {exc}") from exc
            except RedisError as exc:
                ENGINE_COMMANDS.labels(command=command, status="transport_error").inc()
                raise TransportError(f"{command} failed: {exc}") from exc

        ENGINE_COMMANDS.labels(command=command, status="ok").inc()
        return response

    def close(self) -> None:
        self._client.close()


class FakeCommandExecutor(CommandExecutor):
    """In-memory stand-in for RediSearch used by tests and dry runs.

    Every call is recorded in :attr:`calls`. Index and document state follow
    the engine's semantics closely enough to exercise the pipeline: creating
    an existing index fails, dropping or deleting from a missing index fails,
    ``FT.ADD`` without ``REPLACE`` refuses to overwrite, ``FT.DEL`` replies
    ``0`` for unknown documents.
    """

    _VALUE_MODIFIERS = frozenset({"WEIGHT", "SEPARATOR", "PHONETIC"})
    _MODIFIERS = _VALUE_MODIFIERS | {"SORTABLE", "NOINDEX", "NOSTEM"}

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[Any]]] = []
        self.indexes: dict[str, dict[str, dict[str, Any]]] = {}
        self.failures: dict[str, Exception] = {}
        self.saves = 0

    def commands(self, name: str) -> list[list[Any]]:
        """Return the argument lists of every recorded ``name`` call."""
        return [args for command, args in self.calls if command == name]

    def execute(self, command: str, args: Sequence[Any]) -> Any:
        args = list(args)
        self.calls.append((command, args))
        if command in self.failures:
            raise self.failures[command]

        if command == CREATE:
            return self._create(args)
        if command == DROP:
            self._require_index(command, args[0])
            del self.indexes[args[0]]
            return "OK"
        if command == ADD:
            return self._add(args)
        if command == DEL:
            documents = self._require_index(command, args[0])
            return 1 if documents.pop(str(args[1]), None) is not None else 0
        if command == INFO:
            documents = self._require_index(command, args[0])
            return ["index_name", args[0], "num_docs", str(len(documents)), "num_terms", "0"]
        if command == SAVE:
            self.saves += 1
            return "OK"
        raise EngineError(f"Unknown command '{command}'", command=command)

    def _require_index(self, command: str, index_name: str) -> dict[str, dict[str, Any]]:
        if index_name not in self.indexes:
            raise IndexNotFoundError("Unknown Index name", command=command)
        return self.indexes[index_name]

    def _create(self, args: list[Any]) -> str:
        index_name = args[0]
        if index_name in self.indexes:
            raise SchemaCreationError("Index already exists", command=CREATE)
        if len(args) < 2 or args[1] != "SCHEMA":
            raise SchemaCreationError("Missing SCHEMA keyword", command=CREATE)
        names: set[str] = set()
        tokens = args[2:]
        position = 0
        while position < len(tokens):
            name = tokens[position]
            if name in names:
                raise SchemaCreationError(f"Duplicate field in schema - {name}", command=CREATE)
            names.add(name)
            position += 2
            while position < len(tokens) and tokens[position] in self._MODIFIERS:
                position += 2 if tokens[position] in self._VALUE_MODIFIERS else 1
        self.indexes[index_name] = {}
        return "OK"

    def _add(self, args: list[Any]) -> str:
        documents = self._require_index(ADD, args[0])
        document_id = str(args[1])
        options = args[3:]
        fields_at = options.index("FIELDS")
        flags = options[:fields_at]
        values = options[fields_at + 1 :]
        if document_id in documents and "REPLACE" not in flags:
            raise EngineError("Document already exists", command=ADD)
        documents[document_id] = dict(zip(values[::2], values[1::2]))
        return "OK"


def classify_response_error(command: str, exc: Exception) -> EngineError:
    """Map an engine error reply onto the error taxonomy."""
    message = str(exc)
    lowered = message.lower()
    if any(marker in lowered for marker in _MISSING_INDEX_MARKERS):
        return IndexNotFoundError(message, command=command)
    if command == CREATE or any(marker in lowered for marker in _EXISTING_INDEX_MARKERS):
        return SchemaCreationError(message, command=command)
    return EngineError(message, command=command)


def parse_info(reply: Any) -> dict[str, Any]:
    """Turn an ``FT.INFO`` reply into a dict.

    RESP2 replies are flat ``[key, value, key, value, ...]`` lists while RESP3
    and some client versions already return a mapping.
    """
    if reply is None:
        return {}
    if isinstance(reply, Mapping):
        return {_to_str(key): value for key, value in reply.items()}
    items = list(reply)
    if len(items) % 2:
        raise EngineError(f"Malformed {INFO} reply with {len(items)} items", command=INFO)
    return {_to_str(items[i]): items[i + 1] for i in range(0, len(items), 2)}


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value)
