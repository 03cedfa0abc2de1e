"""Result types returned by index operations."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OperationStatus(str, Enum):
    """Outcome of a single engine operation."""

    OK = "ok"
    SKIPPED = "skipped"  # nothing sent to the engine
    MISSING = "missing"  # target document or index absent, non-fatal
    FAILED = "failed"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one index operation.

    ``response`` is the raw engine reply, ``error`` the exception that was
    reported instead of raised, and ``persisted`` the outcome of the
    checkpoint that followed the operation, if any.
    """

    operation: str
    document_id: int | str | None = None
    response: Any = None
    error: Exception | None = None
    status: OperationStatus = OperationStatus.OK
    persisted: OperationResult | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.status is OperationStatus.OK:
            object.__setattr__(self, "status", OperationStatus.FAILED)

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.OK

    @property
    def skipped(self) -> bool:
        return self.status is OperationStatus.SKIPPED

    def raise_for_error(self) -> None:
        """Re-raise the reported error, if any."""
        if self.error is not None:
            raise self.error


@dataclass(frozen=True)
class BulkIndexResult:
    """Outcome of a full reindex: one result per enumerated entity."""

    results: tuple[OperationResult, ...] = field(default_factory=tuple)
    persisted: OperationResult | None = None

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def counts(self) -> Counter[str]:
        """Count results by ``operation:status``, e.g. ``add:ok``."""
        return Counter(f"{result.operation}:{result.status.value}" for result in self.results)

    @property
    def indexed(self) -> int:
        return sum(1 for result in self.results if result.operation == "add" and result.ok)

    @property
    def deleted(self) -> int:
        return sum(1 for result in self.results if result.operation == "delete" and result.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for result in self.results if result.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if result.status is OperationStatus.FAILED)

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(
            f"{result.document_id}: {result.error}" for result in self.results if result.status is OperationStatus.FAILED
        )


@dataclass(frozen=True)
class IndexProgress:
    """Documents in the engine versus entities in the content store."""

    indexed: int
    total: int

    @property
    def ratio(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(self.indexed / self.total, 1.0)
