"""Merge of timestamped partial observations of one paired record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


@dataclass(slots=True)
class Accumulator:
    """Collect observations and reduce them with per-field last-writer-wins.

    For every attribute, the value from the newest observation that defines it
    wins; observations sharing a timestamp are ordered by insertion, later first.
    """

    _observations: list[tuple[datetime, int, dict[str, object]]] = field(default_factory=list)

    def store(self, timestamp: datetime, attributes: Mapping[str, object]) -> None:
        if timestamp.tzinfo is None:
            raise ValueError("Observation timestamps must include timezone information")
        self._observations.append((timestamp, len(self._observations), dict(attributes)))

    def __len__(self) -> int:
        return len(self._observations)

    @property
    def latest_timestamp(self) -> datetime | None:
        if not self._observations:
            return None
        return max(timestamp for timestamp, _, _ in self._observations)

    @property
    def current(self) -> dict[str, object]:
        """The merged attribute set."""

        merged: dict[str, object] = {}
        for _, _, attributes in sorted(self._observations, key=lambda item: item[:2]):
            merged.update(attributes)
        return merged

    def diff(self, current_attributes: Mapping[str, object]) -> dict[str, object]:
        """Merged attributes whose value differs from ``current_attributes``."""

        return {
            attribute: value
            for attribute, value in self.current.items()
            if attribute not in current_attributes or current_attributes[attribute] != value
        }

    def changed(self, current_attributes: Mapping[str, object]) -> bool:
        return bool(self.diff(current_attributes))

    def up_to_date_for(self, timestamp: datetime) -> bool:
        """Whether the newest observation is at least as recent as ``timestamp``."""

        latest = self.latest_timestamp
        return latest is not None and latest >= timestamp
