"""Exception hierarchy for the indexing pipeline."""


class RediPressError(Exception):
    """Base exception for all redipress errors."""


class EngineError(RediPressError):
    """Raised when the search engine replies to a command with an error."""

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command


class SchemaCreationError(EngineError):
    """Raised when an index schema is invalid or the index already exists."""


class IndexNotFoundError(EngineError):
    """Raised when a command targets an index that does not exist."""


class TransportError(RediPressError):
    """Raised when the connection to the search engine fails."""


class ConversionError(RediPressError):
    """Raised when a content entity cannot be converted into a document."""
