"""Local record types backed by SQLAlchemy Core tables.

Every table used as a local record type needs a single-column primary key, a
lookup column holding the remote identity, and two timestamps: ``updated_at``,
bumped on every content change, and ``synchronized_at``, which this adapter keeps
strictly after ``updated_at`` whenever it writes a record itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, insert, or_, select, text, update

from crmsync.domain.errors import MappingConfigurationError, PersistenceError
from crmsync.domain.time_windows import utcnow

from .errors import translate_errors
from .unit_of_work import session_factory as default_session_factory

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from datetime import datetime

    from sqlalchemy import ColumnElement, Table, TextClause
    from sqlalchemy.orm import Session, sessionmaker

    from crmsync.domain.time_windows import Clock

log = getLogger(__name__)

_SYNC_EPSILON = timedelta(microseconds=1)


@dataclass(slots=True, eq=False)
class SqlAlchemyInstance:
    """Snapshot of one row, written back through its record type."""

    record_type: SqlAlchemyRecordType
    row: dict[str, Any] = field(repr=False)

    @property
    def identity(self) -> str | None:
        return self.row.get(self.record_type.lookup_column)

    @property
    def key(self) -> object:
        return self.row[self.record_type.key_column]

    @property
    def attributes(self) -> Mapping[str, object]:
        return self.row

    @property
    def last_update_time(self) -> datetime:
        return self.row[self.record_type.updated_column]

    @property
    def last_sync_time(self) -> datetime | None:
        return self.row.get(self.record_type.synchronized_column)

    @property
    def is_paired(self) -> bool:
        return bool(self.identity)

    def update(self, attributes: Mapping[str, object]) -> SqlAlchemyInstance:
        return self.record_type.update_row(self.key, attributes)

    def mark_synced(self) -> None:
        synced_at = self.record_type.mark_row_synced(self.key)
        self.row[self.record_type.synchronized_column] = synced_at

    def __repr__(self) -> str:
        return f"SqlAlchemyInstance({self.record_type.name}, key={self.key!r})"


class SqlAlchemyRecordType:
    def __init__(
        self,
        table: Table,
        *,
        lookup_column: str,
        name: str | None = None,
        updated_column: str = "updated_at",
        synchronized_column: str = "synchronized_at",
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock = utcnow,
    ) -> None:
        primary_key = list(table.primary_key.columns)
        if len(primary_key) != 1:
            raise MappingConfigurationError(
                f"Table {table.name!r} needs a single-column primary key to act as a record type"
            )
        for column in (lookup_column, updated_column, synchronized_column):
            if column not in table.c:
                raise MappingConfigurationError(f"Table {table.name!r} has no column {column!r}")

        self.table = table
        self.key_column = primary_key[0].name
        self.updated_column = updated_column
        self.synchronized_column = synchronized_column
        self._name = name or table.name
        self._lookup_column = lookup_column
        self._session_factory = session_factory
        self._clock = clock

    @property
    def name(self) -> str:
        return self._name

    @property
    def lookup_column(self) -> str:
        return self._lookup_column

    def has_field(self, name: str) -> bool:
        return name in self.table.c

    def find(self, identity: str) -> SqlAlchemyInstance | None:
        rows = self._select(self.table.c[self.lookup_column] == identity)
        return rows[0] if rows else None

    def get(self, key: object) -> SqlAlchemyInstance | None:
        rows = self._select(self.table.c[self.key_column] == key)
        return rows[0] if rows else None

    def find_all(self, field: str, value: object) -> list[SqlAlchemyInstance]:
        if field not in self.table.c:
            raise MappingConfigurationError(f"{self.name} has no field {field!r}")
        return self._select(self.table.c[field] == value)

    def all(
        self,
        *,
        after: datetime | None = None,
        before: datetime | None = None,
        conditions: Sequence[str] = (),
    ) -> list[SqlAlchemyInstance]:
        """Rows changed since their last synchronisation within ``[after, before)``."""

        updated = self.table.c[self.updated_column]
        synchronized = self.table.c[self.synchronized_column]
        clauses: list[ColumnElement[bool] | TextClause] = [
            or_(synchronized.is_(None), updated > synchronized),
        ]
        if after is not None:
            clauses.append(updated >= after)
        if before is not None:
            clauses.append(updated < before)
        clauses.extend(text(condition) for condition in conditions)
        return self._select(and_(*clauses), order_by=updated)

    def create(self, attributes: Mapping[str, object]) -> SqlAlchemyInstance:
        values = self._writable(attributes)
        values.update(self._stamps())
        identity = _as_identity(values.get(self.lookup_column))
        with translate_errors(identity=identity, attributes=attributes):
            with self._sessions().begin() as session:
                result = session.execute(insert(self.table).values(**values))
                key = result.inserted_primary_key[0]  # type: ignore[index]
                row = self._fetch_one(session, key)
        log.debug(f"Inserted {self.name} {key!r}")
        return row

    def destroy_all(self, identities: Iterable[str]) -> None:
        identities = list(identities)
        if not identities:
            return
        with translate_errors():
            with self._sessions().begin() as session:
                session.execute(
                    delete(self.table).where(self.table.c[self.lookup_column].in_(identities))
                )

    def update_row(self, key: object, attributes: Mapping[str, object]) -> SqlAlchemyInstance:
        values = self._writable(attributes)
        values.update(self._stamps())
        with translate_errors(attributes=attributes):
            with self._sessions().begin() as session:
                result = session.execute(
                    update(self.table).where(self.table.c[self.key_column] == key).values(**values)
                )
                if result.rowcount == 0:  # type: ignore[attr-defined]
                    raise PersistenceError(
                        f"{self.name} {key!r} no longer exists", attributes=attributes
                    )
                return self._fetch_one(session, key)

    def mark_row_synced(self, key: object) -> datetime:
        updated_column = self.table.c[self.updated_column]
        with translate_errors():
            with self._sessions().begin() as session:
                last_update = session.execute(
                    select(updated_column).where(self.table.c[self.key_column] == key)
                ).scalar_one()
                synced_at = max(self._clock(), last_update + _SYNC_EPSILON)
                session.execute(
                    update(self.table)
                    .where(self.table.c[self.key_column] == key)
                    .values({self.synchronized_column: synced_at})
                )
        return synced_at

    def _select(
        self,
        clause: ColumnElement[bool],
        *,
        order_by: Any = None,
    ) -> list[SqlAlchemyInstance]:
        statement = select(self.table).where(clause)
        if order_by is not None:
            statement = statement.order_by(order_by)
        with translate_errors():
            with self._sessions().begin() as session:
                rows = session.execute(statement).mappings().all()
        return [SqlAlchemyInstance(self, dict(row)) for row in rows]

    def _fetch_one(self, session: Session, key: object) -> SqlAlchemyInstance:
        row = (
            session.execute(select(self.table).where(self.table.c[self.key_column] == key))
            .mappings()
            .one()
        )
        return SqlAlchemyInstance(self, dict(row))

    def _writable(self, attributes: Mapping[str, object]) -> dict[str, object]:
        unknown = sorted(name for name in attributes if name not in self.table.c)
        if unknown:
            raise PersistenceError(
                f"{self.name} has no columns {', '.join(unknown)}", attributes=attributes
            )
        return {
            name: value
            for name, value in attributes.items()
            if name not in {self.key_column, self.updated_column, self.synchronized_column}
        }

    def _stamps(self) -> dict[str, datetime]:
        updated_at = self._clock()
        return {
            self.updated_column: updated_at,
            self.synchronized_column: updated_at + _SYNC_EPSILON,
        }

    def _sessions(self) -> sessionmaker[Session]:
        return self._session_factory or default_session_factory()


def _as_identity(value: object) -> str | None:
    return str(value) if value else None


if TYPE_CHECKING:
    from crmsync.domain.ports import LocalRecordType

    _factory_check: Callable[..., LocalRecordType] = SqlAlchemyRecordType
