"""SQLAlchemy adapter package for crmsync."""

from __future__ import annotations

from .mappings import UTCDateTime, create_all_tables, metadata, sync_tracker_table
from .record_types import SqlAlchemyInstance, SqlAlchemyRecordType
from .tracker_store import SqlAlchemyTrackerStore
from .unit_of_work import (
    StartupError,
    configured_engine,
    is_started,
    session_factory,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyInstance",
    "SqlAlchemyRecordType",
    "SqlAlchemyTrackerStore",
    "StartupError",
    "UTCDateTime",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "session_factory",
    "shutdown",
    "startup",
    "sync_tracker_table",
]
