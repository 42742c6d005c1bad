"""Application orchestration entry points."""

from __future__ import annotations

import importlib
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.adapters.sqlalchemy import SqlAlchemyTrackerStore, is_started, startup
from crmsync.config import ConfigurationError, get_sync_config
from crmsync.domain.mapping import MappingRegistry
from crmsync.domain.reconciliation import ReconciliationEngine, Tracker

if TYPE_CHECKING:
    import threading
    from datetime import datetime

    from crmsync.domain.ports import TrackerStore
    from crmsync.domain.reconciliation import CycleResult

log = getLogger(__name__)


def load_registry(target: str) -> MappingRegistry:
    """Import ``module:callable`` and call it to obtain the mapping registry."""

    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"Registry must be given as module:callable, got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import registry module {module_name!r}: {exc}") from exc
    factory = getattr(module, attribute, None)
    if factory is None:
        raise ConfigurationError(f"{module_name} has no attribute {attribute!r}")

    registry = factory() if callable(factory) else factory
    if not isinstance(registry, MappingRegistry):
        raise ConfigurationError(f"{target} did not produce a MappingRegistry")
    return registry


def _default_tracker_store() -> TrackerStore:
    if not is_started():
        startup()
    return SqlAlchemyTrackerStore()


def run_reconciliation(
    registry: MappingRegistry,
    *,
    tracker_store: TrackerStore | None = None,
    max_workers: int | None = None,
    initial_lookback_hours: float | None = None,
    cancel: threading.Event | None = None,
) -> list[CycleResult]:
    """Run one reconciliation cycle for every mapping in ``registry``."""

    sync_config = get_sync_config()
    workers = max_workers if max_workers is not None else sync_config.max_workers
    lookback_hours = (
        initial_lookback_hours
        if initial_lookback_hours is not None
        else sync_config.initial_lookback_hours
    )
    lookback = timedelta(hours=lookback_hours) if lookback_hours is not None else None

    engine = ReconciliationEngine(
        registry=registry,
        tracker=Tracker(tracker_store or _default_tracker_store()),
        initial_lookback=lookback,
    )
    log.info(
        f"Starting reconciliation: mappings={len(registry)}, max_workers={workers}, "
        f"initial_lookback={lookback}"
    )
    results = engine.run(max_workers=workers, cancel=cancel)
    failed = [result.mapping_key for result in results if not result.completed]
    log.info(
        f"Finished reconciliation: completed={len(results) - len(failed)}, "
        f"incomplete={failed or 'none'}"
    )
    return results


def tracked_windows(
    registry: MappingRegistry,
    *,
    tracker_store: TrackerStore | None = None,
) -> dict[str, datetime | None]:
    """Return the end of the last completed window for every mapping."""

    store = tracker_store or _default_tracker_store()
    return {mapping.key: store.last_window_end(mapping.key) for mapping in registry}
