"""Drop local counterparts of remote records that stopped qualifying."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .contracts import CleanResult

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from crmsync.domain.mapping import Mapping
    from crmsync.domain.ports import Instance

log = getLogger(__name__)


class Cleaner:
    """Remove local records whose remote counterpart no longer meets the conditions.

    Only non-passive mappings own their local records, so passive mappings and
    mappings without conditions are left alone.
    """

    def __init__(self, mapping: Mapping) -> None:
        self._mapping = mapping

    def run(self, *, after: datetime | None, before: datetime | None) -> CleanResult:
        mapping = self._mapping
        if mapping.strategy.passive or not mapping.conditions:
            return CleanResult()

        changed = _identities(mapping.remote.all(after=after, before=before))
        qualifying = _identities(
            mapping.remote.all(after=after, before=before, conditions=mapping.conditions)
        )
        dropped = sorted(
            identity
            for identity in changed - qualifying
            if mapping.local.find(identity) is not None
        )
        if not dropped:
            return CleanResult()

        log.info(f"Removing {len(dropped)} {mapping.local_type} records no longer matching")
        mapping.local.destroy_all(dropped)
        return CleanResult(removed=len(dropped))


def _identities(instances: Iterable[Instance]) -> set[str]:
    return {instance.identity for instance in instances if instance.identity}
