"""Remote record types backed by Salesforce sObjects.

Changes are detected through ``SystemModstamp``. When a ``sync_field`` (a custom
datetime field) is configured, every write made by crmsync also stamps it a
little into the future, so the write lands before the stamp and the next cycle
recognises the record as already synchronised. Without a ``sync_field`` our own
writes are collected once more, which is harmless because diffs are idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from functools import cached_property
from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.errors import PersistenceError
from crmsync.domain.time_windows import utcnow

from . import soql

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime

    from crmsync.domain.time_windows import Clock

    from .client import SalesforceClient

log = getLogger(__name__)

MODSTAMP_FIELD = "SystemModstamp"
DEFAULT_SYNC_MARGIN = timedelta(seconds=5)


@dataclass(slots=True, eq=False)
class SalesforceInstance:
    record_type: SalesforceRecordType
    record: dict[str, object] = field(repr=False)

    @property
    def identity(self) -> str:
        return str(self.record["Id"])

    @property
    def key(self) -> object:
        return self.identity

    @property
    def attributes(self) -> Mapping[str, object]:
        return self.record

    @property
    def last_update_time(self) -> datetime:
        stamp = soql.parse_datetime(self.record.get(MODSTAMP_FIELD))
        if stamp is None:
            raise PersistenceError(f"{self.record_type.name} {self.identity} has no modstamp")
        return stamp

    @property
    def last_sync_time(self) -> datetime | None:
        sync_field = self.record_type.sync_field
        if sync_field is None:
            return None
        return soql.parse_datetime(self.record.get(sync_field))

    def update(self, attributes: Mapping[str, object]) -> SalesforceInstance:
        return self.record_type.update_record(self.identity, attributes)

    def mark_synced(self) -> None:
        stamp = self.record_type.mark_record_synced(self.identity)
        if stamp is not None and self.record_type.sync_field is not None:
            self.record[self.record_type.sync_field] = stamp

    def __repr__(self) -> str:
        return f"SalesforceInstance({self.record_type.name}, {self.identity})"


class SalesforceRecordType:
    def __init__(
        self,
        client: SalesforceClient,
        sobject: str,
        *,
        fields: Sequence[str],
        sync_field: str | None = None,
        sync_margin: timedelta = DEFAULT_SYNC_MARGIN,
        clock: Clock = utcnow,
    ) -> None:
        self.client = client
        self.sobject = sobject
        self.sync_field = sync_field
        self._sync_margin = sync_margin
        self._clock = clock
        selected = ["Id", MODSTAMP_FIELD, *fields]
        if sync_field is not None:
            selected.append(sync_field)
        self.fields = tuple(dict.fromkeys(selected))

    @property
    def name(self) -> str:
        return self.sobject

    @cached_property
    def _field_names(self) -> frozenset[str]:
        return self.client.describe(self.sobject).field_names()

    def has_field(self, name: str) -> bool:
        return name in self.fields or name in self._field_names

    def find(self, identity: str) -> SalesforceInstance | None:
        found = self._query([f"Id = {soql.literal(identity)}"], limit=1)
        return found[0] if found else None

    def get(self, key: object) -> SalesforceInstance | None:
        return self.find(str(key))

    def find_all(self, field: str, value: object) -> list[SalesforceInstance]:
        return self._query([f"{field} = {soql.literal(value)}"])

    def all(
        self,
        *,
        after: datetime | None = None,
        before: datetime | None = None,
        conditions: Sequence[str] = (),
    ) -> list[SalesforceInstance]:
        clauses: list[str] = []
        if after is not None:
            clauses.append(f"{MODSTAMP_FIELD} >= {soql.format_datetime(after)}")
        if before is not None:
            clauses.append(f"{MODSTAMP_FIELD} < {soql.format_datetime(before)}")
        clauses.extend(f"({condition})" for condition in conditions)
        return self._query(clauses, order_by=MODSTAMP_FIELD)

    def create(self, attributes: Mapping[str, object]) -> SalesforceInstance:
        payload = self._payload(attributes)
        identity = self.client.create(self.sobject, payload)
        log.debug(f"Created {self.sobject} {identity}")
        return self._refetch(identity, attributes)

    def destroy_all(self, identities: Iterable[str]) -> None:
        for identity in identities:
            self.client.delete(self.sobject, identity)

    def update_record(
        self,
        identity: str,
        attributes: Mapping[str, object],
    ) -> SalesforceInstance:
        self.client.update(self.sobject, identity, self._payload(attributes))
        return self._refetch(identity, attributes)

    def mark_record_synced(self, identity: str) -> datetime | None:
        if self.sync_field is None:
            return None
        stamp = self._sync_stamp()
        self.client.update(self.sobject, identity, {self.sync_field: soql.format_datetime(stamp)})
        return stamp

    def _payload(self, attributes: Mapping[str, object]) -> dict[str, object]:
        payload = {
            name: value for name, value in attributes.items() if name not in {"Id", MODSTAMP_FIELD}
        }
        if self.sync_field is not None:
            payload[self.sync_field] = soql.format_datetime(self._sync_stamp())
        return payload

    def _sync_stamp(self) -> datetime:
        return self._clock() + self._sync_margin

    def _refetch(self, identity: str, attributes: Mapping[str, object]) -> SalesforceInstance:
        instance = self.find(identity)
        if instance is None:
            raise PersistenceError(
                f"{self.sobject} {identity} vanished after write",
                identity=identity,
                attributes=attributes,
            )
        return instance

    def _query(
        self,
        clauses: Sequence[str],
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[SalesforceInstance]:
        statement = f"SELECT {', '.join(self.fields)} FROM {self.sobject}"
        if clauses:
            statement += f" WHERE {' AND '.join(clauses)}"
        if order_by is not None:
            statement += f" ORDER BY {order_by}"
        if limit is not None:
            statement += f" LIMIT {limit}"
        return [SalesforceInstance(self, record) for record in self.client.query(statement)]

