"""In-memory record types for exercising the reconciliation core."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from crmsync.domain.errors import DuplicateRecordError, PersistenceError, ReconciliationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence


class TickingClock:
    """Returns strictly increasing timestamps, one step per call."""

    def __init__(
        self,
        start: datetime | None = None,
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@dataclass(eq=False)
class MemoryInstance:
    record_type: MemoryRecordType
    key: object
    values: dict[str, object]
    last_update_time: datetime
    last_sync_time: datetime | None = None

    @property
    def identity(self) -> str | None:
        if self.record_type.lookup_column is None:
            return str(self.key)
        value = self.values.get(self.record_type.lookup_column)
        return str(value) if value else None

    @property
    def attributes(self) -> Mapping[str, object]:
        return self.values

    @property
    def is_paired(self) -> bool:
        return bool(self.identity)

    def update(self, attributes: Mapping[str, object]) -> MemoryInstance:
        self.record_type.check_update(self, attributes)
        self.values.update(attributes)
        self.last_update_time = self.record_type.clock()
        self.last_sync_time = self.record_type.clock()
        self.record_type.updates.append((self.key, dict(attributes)))
        return self

    def mark_synced(self) -> None:
        self.last_sync_time = self.record_type.clock()

    def touch(self, **values: object) -> MemoryInstance:
        """Simulate an edit made outside of crmsync."""

        self.values.update(values)
        self.last_update_time = self.record_type.clock()
        return self


@dataclass(eq=False)
class MemoryRecordType:
    """Record type over a dict.

    Remote types have no ``lookup_column`` and use their key as identity.
    """

    name: str
    fields: frozenset[str]
    clock: Callable[[], datetime]
    lookup_column: str | None = None
    predicates: dict[str, Callable[[Mapping[str, object]], bool]] = field(default_factory=dict)
    records: dict[object, MemoryInstance] = field(default_factory=dict)
    updates: list[tuple[object, dict[str, object]]] = field(default_factory=list)
    fail_create: PersistenceError | None = None
    fail_update: dict[object, ReconciliationError] = field(default_factory=dict)
    fail_all: ReconciliationError | None = None
    on_all: Callable[[], None] | None = None
    _keys: Iterator[int] = field(default_factory=lambda: itertools.count(1))

    @classmethod
    def local(
        cls,
        name: str,
        fields: Iterable[str],
        *,
        clock: Callable[[], datetime],
        lookup_column: str = "salesforce_id",
    ) -> MemoryRecordType:
        return cls(name, frozenset({*fields, lookup_column}), clock, lookup_column=lookup_column)

    @classmethod
    def remote(
        cls,
        name: str,
        fields: Iterable[str],
        *,
        clock: Callable[[], datetime],
    ) -> MemoryRecordType:
        return cls(name, frozenset(fields), clock)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def find(self, identity: str) -> MemoryInstance | None:
        matches = (record for record in self.records.values() if record.identity == identity)
        return next(matches, None)

    def get(self, key: object) -> MemoryInstance | None:
        return self.records.get(key)

    def find_all(self, field: str, value: object) -> list[MemoryInstance]:
        return [record for record in self.records.values() if record.values.get(field) == value]

    def all(
        self,
        *,
        after: datetime | None = None,
        before: datetime | None = None,
        conditions: Sequence[str] = (),
    ) -> list[MemoryInstance]:
        if self.on_all is not None:
            self.on_all()
        if self.fail_all is not None:
            raise self.fail_all
        return [
            record
            for record in self.records.values()
            if (after is None or record.last_update_time >= after)
            and (before is None or record.last_update_time < before)
            and all(self.predicates[condition](record.values) for condition in conditions)
        ]

    def create(self, attributes: Mapping[str, object]) -> MemoryInstance:
        if self.fail_create is not None:
            error, self.fail_create = self.fail_create, None
            raise error
        self._check_fields(attributes)
        if self.lookup_column is not None:
            identity = attributes.get(self.lookup_column)
            if identity and self.find(str(identity)) is not None:
                raise DuplicateRecordError(
                    f"{self.name} {identity} already exists",
                    identity=str(identity),
                    attributes=attributes,
                )
        return self.insert(**attributes)

    def destroy_all(self, identities: Iterable[str]) -> None:
        wanted = set(identities)
        for key in [key for key, record in self.records.items() if record.identity in wanted]:
            del self.records[key]

    def insert(self, **values: object) -> MemoryInstance:
        """Add a record as if it had been created outside of crmsync."""

        number = next(self._keys)
        key: object = number
        if self.lookup_column is None:
            key = f"{self.name[:3].upper()}{number:03d}"
        record = MemoryInstance(self, key, dict(values), last_update_time=self.clock())
        self.records[key] = record
        return record

    def check_update(self, record: MemoryInstance, attributes: Mapping[str, object]) -> None:
        error = self.fail_update.pop(record.key, None)
        if error is not None:
            raise error
        self._check_fields(attributes)

    def _check_fields(self, attributes: Mapping[str, object]) -> None:
        unknown = sorted(set(attributes) - self.fields)
        if unknown:
            raise PersistenceError(f"{self.name} has no fields {unknown}", attributes=attributes)


@dataclass
class MemoryTrackerStore:
    windows: dict[str, datetime] = field(default_factory=dict)

    def last_window_end(self, mapping_key: str) -> datetime | None:
        return self.windows.get(mapping_key)

    def record_window_end(self, mapping_key: str, window_end: datetime) -> None:
        self.windows[mapping_key] = window_end
