"""Push merged changes to the stale side(s) of existing pairs."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.errors import PersistenceError
from crmsync.domain.mapping import Side

from .contracts import RecordFailure, SynchronizeResult, raise_if_cancelled

if TYPE_CHECKING:
    import threading

    from crmsync.domain.mapping import Mapping
    from crmsync.domain.ports import Instance

    from .accumulator import Accumulator
    from .contracts import ChangeKey, ChangeSet

log = getLogger(__name__)


class Synchronizer:
    def __init__(self, mapping: Mapping) -> None:
        self._mapping = mapping

    def run(
        self,
        changes: ChangeSet,
        *,
        cancel: threading.Event | None = None,
    ) -> SynchronizeResult:
        result = SynchronizeResult()
        mapping = self._mapping

        for key, accumulator in changes.accumulators.items():
            raise_if_cancelled(cancel)
            if key.remote_type != mapping.remote_type:
                result.skipped += 1
                continue
            local = mapping.local.find(key.remote_id)
            remote = changes.remote_instances.get(key) or mapping.remote.find(key.remote_id)
            if local is None or remote is None:
                # Only the initializer creates records.
                result.skipped += 1
                continue
            self._sync_pair(key, accumulator, local=local, remote=remote, result=result)

        return result

    def _sync_pair(
        self,
        key: ChangeKey,
        accumulator: Accumulator,
        *,
        local: Instance,
        remote: Instance,
        result: SynchronizeResult,
    ) -> None:
        strategy = self._mapping.strategy
        targets = [
            (side, instance)
            for side, instance, enabled in (
                (Side.LOCAL, local, strategy.sync_to_local),
                (Side.REMOTE, remote, strategy.sync_to_remote),
            )
            if enabled
        ]

        updated = False
        for side, instance in targets:
            if not accumulator.up_to_date_for(instance.last_update_time):
                # Written after every merged observation.
                log.debug(f"Not overwriting newer {instance.record_type.name} {key.remote_id}")
                continue
            patch = self._patch(accumulator, side, instance)
            if not patch:
                continue
            try:
                instance.update(patch)
            except PersistenceError as exc:
                log.error(
                    f"Could not update {instance.record_type.name} {key.remote_id}: {exc} "
                    f"(patch: {patch})"
                )
                result.failures.append(
                    RecordFailure(
                        operation="update",
                        side=side,
                        identity=key.remote_id,
                        message=str(exc),
                        attributes=patch,
                    )
                )
                continue
            updated = True
            if side is Side.LOCAL:
                result.updated_local += 1
            else:
                result.updated_remote += 1

        if not updated:
            result.unchanged += 1

    def _patch(self, accumulator: Accumulator, side: Side, instance: Instance) -> dict[str, object]:
        attribute_map = self._mapping.attribute_map
        current = attribute_map.normalized(side, instance.attributes)
        diff = accumulator.diff(current)
        if not diff:
            return {}
        return attribute_map.convert_from_remote(side, diff)
