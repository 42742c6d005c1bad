"""Reconciliation core for keeping a local store and a remote CRM in step.

Flow per mapping and cycle:
1) the tracker yields the window since the last completed cycle
2) the collector gathers changed records from both sides into accumulators
3) the initializer creates authorised counterparts, with their associations
4) the synchronizer pushes merged changes to stale sides of existing pairs
5) the cleaner drops local records whose remote no longer qualifies
"""

from __future__ import annotations

from .accumulator import Accumulator
from .associator import Associator
from .cleaner import Cleaner
from .collector import Collector
from .contracts import (
    ChangeKey,
    ChangeSet,
    CleanResult,
    CycleResult,
    InitializeResult,
    RecordFailure,
    SynchronizeResult,
)
from .engine import ReconciliationEngine
from .initializer import Initializer
from .synchronizer import Synchronizer
from .tracker import Tracker

__all__ = [
    "Accumulator",
    "Associator",
    "ChangeKey",
    "ChangeSet",
    "CleanResult",
    "Cleaner",
    "Collector",
    "CycleResult",
    "InitializeResult",
    "Initializer",
    "ReconciliationEngine",
    "RecordFailure",
    "Synchronizer",
    "SynchronizeResult",
    "Tracker",
]
