"""Durable tracker windows in the ``sync_tracker`` table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from crmsync.domain.time_windows import utcnow

from .errors import translate_errors
from .mappings import sync_tracker_table
from .unit_of_work import session_factory as default_session_factory

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.orm import Session, sessionmaker

    from crmsync.domain.ports import TrackerStore


class SqlAlchemyTrackerStore:
    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    def last_window_end(self, mapping_key: str) -> datetime | None:
        statement = select(sync_tracker_table.c.window_end).where(
            sync_tracker_table.c.mapping_key == mapping_key
        )
        with translate_errors(), self._sessions().begin() as session:
            return session.execute(statement).scalar_one_or_none()

    def record_window_end(self, mapping_key: str, window_end: datetime) -> None:
        values = {"window_end": window_end, "updated_at": utcnow()}
        with translate_errors(), self._sessions().begin() as session:
            result = session.execute(
                update(sync_tracker_table)
                .where(sync_tracker_table.c.mapping_key == mapping_key)
                .values(**values)
            )
            if result.rowcount == 0:  # type: ignore[attr-defined]
                session.execute(
                    insert(sync_tracker_table).values(mapping_key=mapping_key, **values)
                )

    def windows(self) -> dict[str, datetime]:
        statement = select(sync_tracker_table.c.mapping_key, sync_tracker_table.c.window_end)
        with translate_errors(), self._sessions().begin() as session:
            return {key: end for key, end in session.execute(statement).all()}

    def _sessions(self) -> sessionmaker[Session]:
        return self._session_factory or default_session_factory()


if TYPE_CHECKING:
    _store_check: TrackerStore = SqlAlchemyTrackerStore()
