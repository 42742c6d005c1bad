"""Logging decorators for record types and their instances.

``logged(record_type)`` wraps any record type so that creates, updates and
deletes emit log lines with the attempted attributes. Failures are logged and
re-raised unchanged, so the reconciliation core still sees them.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, TypeVar

from crmsync.domain.errors import ReconciliationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime

    from crmsync.domain.ports import Instance, RecordType

log = getLogger(__name__)

T = TypeVar("T", bound="RecordType")


class LoggedInstance:
    def __init__(self, record_type: LoggedRecordType, wrapped: Instance) -> None:
        self._record_type = record_type
        self.wrapped = wrapped

    @property
    def record_type(self) -> LoggedRecordType:
        return self._record_type

    @property
    def identity(self) -> str | None:
        return self.wrapped.identity

    @property
    def key(self) -> object:
        return self.wrapped.key

    @property
    def attributes(self) -> Mapping[str, object]:
        return self.wrapped.attributes

    @property
    def last_update_time(self) -> datetime:
        return self.wrapped.last_update_time

    @property
    def last_sync_time(self) -> datetime | None:
        return self.wrapped.last_sync_time

    @property
    def is_paired(self) -> bool:
        return bool(getattr(self.wrapped, "is_paired", self.wrapped.identity))

    def update(self, attributes: Mapping[str, object]) -> LoggedInstance:
        name = self._record_type.name
        before = dict(self.wrapped.attributes)
        try:
            updated = self.wrapped.update(attributes)
        except ReconciliationError as exc:
            log.error(f"Update of {name} {self.identity} failed: {exc} (changes: {attributes})")
            raise
        log.info(f"Updated {name} {self.identity}: {before} changes: {dict(attributes)}")
        return LoggedInstance(self._record_type, updated)

    def mark_synced(self) -> None:
        self.wrapped.mark_synced()

    def __repr__(self) -> str:
        return f"Logged({self.wrapped!r})"


class LoggedRecordType:
    """Record type proxy that logs every write."""

    def __init__(self, wrapped: RecordType) -> None:
        self.wrapped = wrapped

    def __getattr__(self, name: str) -> Any:
        # Adapter extras such as ``lookup_column`` pass straight through.
        return getattr(self.wrapped, name)

    @property
    def name(self) -> str:
        return self.wrapped.name

    def has_field(self, name: str) -> bool:
        return self.wrapped.has_field(name)

    def find(self, identity: str) -> LoggedInstance | None:
        return self._wrap(self.wrapped.find(identity))

    def get(self, key: object) -> LoggedInstance | None:
        return self._wrap(self.wrapped.get(key))

    def find_all(self, field: str, value: object) -> list[LoggedInstance]:
        return [LoggedInstance(self, instance) for instance in self.wrapped.find_all(field, value)]

    def all(
        self,
        *,
        after: datetime | None = None,
        before: datetime | None = None,
        conditions: Sequence[str] = (),
    ) -> list[LoggedInstance]:
        instances = self.wrapped.all(after=after, before=before, conditions=conditions)
        return [LoggedInstance(self, instance) for instance in instances]

    def create(self, attributes: Mapping[str, object]) -> LoggedInstance:
        try:
            created = self.wrapped.create(attributes)
        except ReconciliationError as exc:
            log.error(f"Create of {self.name} failed: {exc} (attributes: {dict(attributes)})")
            raise
        log.info(f"Created {self.name} {created.identity}: {dict(created.attributes)}")
        return LoggedInstance(self, created)

    def destroy_all(self, identities: Iterable[str]) -> None:
        identities = list(identities)
        try:
            self.wrapped.destroy_all(identities)
        except ReconciliationError as exc:
            log.error(f"Removal of {len(identities)} {self.name} records failed: {exc}")
            raise
        log.info(f"Removed {self.name} records {identities}")

    def _wrap(self, instance: Instance | None) -> LoggedInstance | None:
        return LoggedInstance(self, instance) if instance is not None else None

    def __repr__(self) -> str:
        return f"Logged({self.wrapped!r})"


def logged(record_type: T) -> T:
    """Wrap ``record_type`` with write logging; the wrapper keeps its interface."""

    return LoggedRecordType(record_type)  # type: ignore[return-value]
