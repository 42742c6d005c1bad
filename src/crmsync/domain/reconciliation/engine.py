"""Orchestrator for the reconciliation subsystem.

The engine composes the cycle stages (collect, initialize, synchronize, clean)
for every registered mapping but does not prescribe concrete adapters. Mappings
are independent units of work and run on a thread pool.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.errors import CycleCancelled, ReconciliationError, TransientError
from crmsync.domain.mapping import AssociationResolver

from .associator import Associator
from .cleaner import Cleaner
from .collector import Collector
from .contracts import CycleResult, raise_if_cancelled
from .initializer import Initializer
from .synchronizer import Synchronizer

if TYPE_CHECKING:
    import threading
    from datetime import timedelta

    from crmsync.domain.mapping import Mapping, MappingRegistry

    from .tracker import Tracker

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Run reconciliation cycles for the mappings of one registry."""

    registry: MappingRegistry
    tracker: Tracker
    initial_lookback: timedelta | None = None

    def run(
        self,
        *,
        max_workers: int | None = None,
        cancel: threading.Event | None = None,
    ) -> list[CycleResult]:
        """Run one cycle for every mapping and return the results in registry order."""

        self.registry.validate()
        mappings = list(self.registry)
        if not mappings:
            return []

        workers = max_workers or len(mappings)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="crmsync") as pool:
            futures = [
                pool.submit(self.run_mapping, mapping, cancel=cancel) for mapping in mappings
            ]
            return [future.result() for future in futures]

    def run_mapping(
        self,
        mapping: Mapping,
        *,
        cancel: threading.Event | None = None,
    ) -> CycleResult:
        """Run a single cycle for ``mapping``.

        The tracker window only advances when every stage finished without a
        rejected record. Failures and cancellation leave it in place so the window
        is replayed and rejected records are evaluated again from scratch.
        """

        after, before = self.tracker.window(mapping.key, lookback=self.initial_lookback).resolve()
        result = CycleResult(mapping_key=mapping.key, window_start=after, window_end=before)
        log.info(f"Starting cycle for {mapping.key}: after={after}, before={before}")

        resolver = AssociationResolver(self.registry)
        try:
            raise_if_cancelled(cancel)
            changes = Collector(mapping).run(after=after, before=before)
            result.collected = len(changes)
            result.initialized = Initializer(
                mapping,
                resolver=resolver,
                associator=Associator(resolver),
            ).run(changes, cancel=cancel)
            result.synchronized = Synchronizer(mapping).run(changes, cancel=cancel)
            raise_if_cancelled(cancel)
            result.cleaned = Cleaner(mapping).run(after=after, before=before)
        except TransientError as exc:
            log.warning(f"Cycle for {mapping.key} stopped early, window kept: {exc}")
            result.error = str(exc)
            return result
        except CycleCancelled as exc:
            log.warning(f"Cycle for {mapping.key} cancelled, window kept")
            result.error = str(exc)
            return result
        except ReconciliationError as exc:
            log.exception(f"Cycle for {mapping.key} failed, window kept")
            result.error = str(exc)
            return result

        result.completed = True
        if result.failures:
            log.warning(
                f"Cycle for {mapping.key} rejected {len(result.failures)} record(s), window kept"
            )
        elif before is not None:
            self.tracker.advance(mapping.key, before)
        log.info(
            f"Finished cycle for {mapping.key}: collected={result.collected}, "
            f"created={result.initialized.created}, "
            f"updated={result.synchronized.updated_local + result.synchronized.updated_remote}, "
            f"removed={result.cleaned.removed}, failures={len(result.failures)}"
        )
        return result
