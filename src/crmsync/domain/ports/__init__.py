"""Domain port definitions for adapters."""

from __future__ import annotations

from .records import Instance, LocalInstance, LocalRecordType, RecordType
from .tracking import TrackerStore

__all__ = [
    "Instance",
    "LocalInstance",
    "LocalRecordType",
    "RecordType",
    "TrackerStore",
]
