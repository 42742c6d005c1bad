"""Shared reconciliation contract components.

This module holds the per-cycle value types passed between stages and the result
summaries each stage reports back to the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from crmsync.domain.errors import CycleCancelled

if TYPE_CHECKING:
    import threading
    from datetime import datetime

    from crmsync.domain.mapping import Side
    from crmsync.domain.ports import Instance

    from .accumulator import Accumulator


@dataclass(frozen=True, slots=True)
class ChangeKey:
    """Groups one cycle's observations of a paired record."""

    remote_id: str
    remote_type: str


@dataclass(slots=True)
class ChangeSet:
    """Everything the collector observed inside one window."""

    accumulators: dict[ChangeKey, Accumulator] = field(default_factory=dict)
    remote_instances: dict[ChangeKey, Instance] = field(default_factory=dict)
    unpaired_local: list[Instance] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.accumulators) + len(self.unpaired_local)


@dataclass(slots=True, kw_only=True)
class RecordFailure:
    """A per-record persistence failure that did not abort the cycle."""

    operation: str
    side: Side
    identity: str | None
    message: str
    attributes: dict[str, object] | None = None


@dataclass(slots=True)
class InitializeResult:
    created_local: int = 0
    created_remote: int = 0
    skipped: int = 0
    failures: list[RecordFailure] = field(default_factory=list)

    @property
    def created(self) -> int:
        return self.created_local + self.created_remote


@dataclass(slots=True)
class SynchronizeResult:
    updated_local: int = 0
    updated_remote: int = 0
    unchanged: int = 0
    skipped: int = 0
    failures: list[RecordFailure] = field(default_factory=list)


@dataclass(slots=True)
class CleanResult:
    removed: int = 0


@dataclass(slots=True, kw_only=True)
class CycleResult:
    """Outcome of one mapping's reconciliation cycle."""

    mapping_key: str
    window_start: datetime | None
    window_end: datetime | None
    completed: bool = False
    collected: int = 0
    initialized: InitializeResult = field(default_factory=InitializeResult)
    synchronized: SynchronizeResult = field(default_factory=SynchronizeResult)
    cleaned: CleanResult = field(default_factory=CleanResult)
    error: str | None = None

    @property
    def failures(self) -> list[RecordFailure]:
        return [*self.initialized.failures, *self.synchronized.failures]


def raise_if_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise CycleCancelled("Reconciliation cycle cancelled")
