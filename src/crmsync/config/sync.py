"""Reconciliation cycle defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_float, optional_env_int
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class SyncConfig:
    # ``None`` runs every mapping on its own worker thread.
    max_workers: int | None = None
    # Only applies to mappings that have never completed a cycle.
    initial_lookback_hours: float | None = None

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.initial_lookback_hours is not None and self.initial_lookback_hours < 0:
            raise ConfigurationError("initial_lookback_hours must be non-negative")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        max_workers=optional_env_int("CRMSYNC_MAX_WORKERS"),
        initial_lookback_hours=optional_env_float("CRMSYNC_INITIAL_LOOKBACK_HOURS"),
    )
