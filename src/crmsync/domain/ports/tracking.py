"""Port for persisting the per-mapping polling window."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime


@runtime_checkable
class TrackerStore(Protocol):
    """Durable ``mapping key -> last window end`` storage."""

    def last_window_end(self, mapping_key: str) -> datetime | None: ...

    def record_window_end(self, mapping_key: str, window_end: datetime) -> None: ...
