"""Incremental polling windows, one per mapping."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.time_windows import TimeWindow, utcnow

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from crmsync.domain.ports import TrackerStore
    from crmsync.domain.time_windows import Clock

log = getLogger(__name__)


class Tracker:
    """Compute the next window from the last completed one.

    The window end is only advanced by :meth:`advance`, which the engine calls once
    a cycle finished cleanly, so a failed cycle replays the same window.
    """

    def __init__(self, store: TrackerStore, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    def window(self, mapping_key: str, *, lookback: timedelta | None = None) -> TimeWindow:
        cycle_start = self._clock()
        last_end = self._store.last_window_end(mapping_key)
        if last_end is not None:
            return TimeWindow(start=last_end, end=cycle_start)
        log.info(f"No completed cycle recorded for {mapping_key}, scanning from the beginning")
        return TimeWindow(end=cycle_start, lookback=lookback)

    def advance(self, mapping_key: str, window_end: datetime) -> None:
        self._store.record_window_end(mapping_key, window_end)

    def last_window_end(self, mapping_key: str) -> datetime | None:
        return self._store.last_window_end(mapping_key)
