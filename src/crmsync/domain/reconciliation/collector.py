"""Gather the records changed on both sides inside one window."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.mapping import Side

from .accumulator import Accumulator
from .contracts import ChangeKey, ChangeSet

if TYPE_CHECKING:
    from datetime import datetime

    from crmsync.domain.mapping import Mapping
    from crmsync.domain.ports import Instance

log = getLogger(__name__)


class Collector:
    def __init__(self, mapping: Mapping) -> None:
        self._mapping = mapping

    def run(self, *, after: datetime | None, before: datetime | None) -> ChangeSet:
        mapping = self._mapping
        changes = ChangeSet()

        remote_instances = mapping.remote.all(
            after=after,
            before=before,
            conditions=mapping.conditions,
        )
        for instance in remote_instances:
            if _updated_internally(instance) or not instance.identity:
                continue
            key = ChangeKey(instance.identity, mapping.remote_type)
            self._accumulate(changes, key, instance, Side.REMOTE)
            changes.remote_instances[key] = instance

        for instance in mapping.local.all(after=after, before=before):
            if _updated_internally(instance):
                continue
            identity = instance.identity
            if identity is None or not mapping.is_paired(instance):
                changes.unpaired_local.append(instance)
                continue
            key = ChangeKey(identity, mapping.remote_type)
            self._accumulate(changes, key, instance, Side.LOCAL)

        log.debug(
            f"Collected {len(changes.accumulators)} paired and "
            f"{len(changes.unpaired_local)} unpaired changes for {mapping.key}"
        )
        return changes

    def _accumulate(
        self, changes: ChangeSet, key: ChangeKey, instance: Instance, side: Side
    ) -> None:
        accumulator = changes.accumulators.get(key)
        if accumulator is None:
            accumulator = changes.accumulators[key] = Accumulator()
        attributes = self._mapping.attribute_map.normalized(side, instance.attributes)
        accumulator.store(instance.last_update_time, attributes)


def _updated_internally(instance: Instance) -> bool:
    """Whether the last write to ``instance`` was our own synchronization."""

    last_sync = instance.last_sync_time
    return last_sync is not None and last_sync >= instance.last_update_time
