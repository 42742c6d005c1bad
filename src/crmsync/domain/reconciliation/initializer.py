"""Create missing counterparts for records observed on only one side."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.errors import PersistenceError
from crmsync.domain.mapping import Side

from .contracts import InitializeResult, RecordFailure, raise_if_cancelled

if TYPE_CHECKING:
    import threading

    from crmsync.domain.mapping import AssociationResolver, Mapping
    from crmsync.domain.ports import Instance

    from .associator import Associator
    from .contracts import ChangeSet

log = getLogger(__name__)


class Initializer:
    """Build counterparts the mapping's strategy authorises.

    Remote records whose identity is already present locally fall through to the
    synchronizer untouched. A rejected creation is reported and left unmatched, so
    the next cycle evaluates it again from scratch.
    """

    def __init__(
        self,
        mapping: Mapping,
        *,
        resolver: AssociationResolver,
        associator: Associator,
    ) -> None:
        self._mapping = mapping
        self._resolver = resolver
        self._associator = associator

    def run(self, changes: ChangeSet, *, cancel: threading.Event | None = None) -> InitializeResult:
        result = InitializeResult()
        strategy = self._mapping.strategy

        for remote in changes.remote_instances.values():
            raise_if_cancelled(cancel)
            if not strategy.sync_to_local:
                result.skipped += 1
                continue
            if self._mapping.local.find(remote.identity) is not None:
                continue
            if self._create(remote, Side.LOCAL, result):
                result.created_local += 1

        for local in changes.unpaired_local:
            raise_if_cancelled(cancel)
            if not strategy.sync_to_remote:
                result.skipped += 1
                continue
            if self._create(local, Side.REMOTE, result):
                result.created_remote += 1

        return result

    def _create(self, record: Instance, target: Side, result: InitializeResult) -> bool:
        mapping = self._mapping
        if not mapping.strategy.should_create(record, mapping=mapping, resolver=self._resolver):
            result.skipped += 1
            return False
        try:
            created = self._associator.materialize(mapping, record)
        except PersistenceError as exc:
            attributes = exc.attributes or self._attempted(record, target)
            log.error(
                f"Could not create {mapping.record_type(target).name} for "
                f"{mapping.record_type(target.other).name} {record.identity or record.key}: "
                f"{exc} (attributes: {attributes})"
            )
            result.failures.append(
                RecordFailure(
                    operation="create",
                    side=target,
                    identity=record.identity,
                    message=str(exc),
                    attributes=attributes,
                )
            )
            return False
        log.debug(f"Created {mapping.record_type(target).name} {created.identity}")
        return True

    def _attempted(self, record: Instance, target: Side) -> dict[str, object]:
        """The attribute set a creation on ``target`` would have written."""

        mapping = self._mapping
        attribute_map = mapping.attribute_map
        attributes = attribute_map.convert(
            target, attribute_map.attributes_from(target.other, record.attributes)
        )
        if target is Side.LOCAL:
            attributes[mapping.lookup_column] = record.identity
        return attributes
