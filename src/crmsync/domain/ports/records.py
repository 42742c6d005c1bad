"""Capability contracts every record store adapter implements.

Both the local (database) and the remote (CRM) side expose the same small surface.
Adapters raise :class:`~crmsync.domain.errors.PersistenceError` when a write is
rejected and :class:`~crmsync.domain.errors.TransientError` on I/O failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime


@runtime_checkable
class Instance(Protocol):
    """One concrete record on one side."""

    @property
    def record_type(self) -> RecordType: ...

    @property
    def identity(self) -> str | None:
        """Remote identity of the record (the cross-system join key)."""
        ...

    @property
    def key(self) -> object:
        """Primary key of the record in its own store."""
        ...

    @property
    def attributes(self) -> Mapping[str, object]:
        """Native attribute snapshot, keyed by the store's own field names."""
        ...

    @property
    def last_update_time(self) -> datetime: ...

    @property
    def last_sync_time(self) -> datetime | None: ...

    def update(self, attributes: Mapping[str, object]) -> Instance:
        """Write ``attributes`` and advance the synchronization timestamp."""
        ...

    def mark_synced(self) -> None:
        """Advance the synchronization timestamp strictly past the last update."""
        ...


@runtime_checkable
class LocalInstance(Instance, Protocol):
    @property
    def is_paired(self) -> bool: ...


@runtime_checkable
class RecordType(Protocol):
    """One entity type in one store."""

    @property
    def name(self) -> str: ...

    def find(self, identity: str) -> Instance | None: ...

    def get(self, key: object) -> Instance | None: ...

    def find_all(self, field: str, value: object) -> Sequence[Instance]: ...

    def all(
        self,
        *,
        after: datetime | None = None,
        before: datetime | None = None,
        conditions: Sequence[str] = (),
    ) -> Sequence[Instance]:
        """Records changed in ``[after, before)`` that satisfy ``conditions``."""
        ...

    def create(self, attributes: Mapping[str, object]) -> Instance: ...

    def destroy_all(self, identities: Iterable[str]) -> None: ...

    def has_field(self, name: str) -> bool: ...


@runtime_checkable
class LocalRecordType(RecordType, Protocol):
    """Record type of the local store, which owns the lookup column."""

    @property
    def lookup_column(self) -> str: ...

    def find(self, identity: str) -> LocalInstance | None: ...
