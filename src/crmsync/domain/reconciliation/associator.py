"""Counterpart creation and association materialisation.

Creating a counterpart always happens together with its associations: the
associated records are found (or created, recursing into their own mapping) on
the side that just gained a record, the links are written, and every touched
record is marked synchronised so the next cycle does not read our own writes as
external changes.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from crmsync.domain.errors import ReconciliationError
from crmsync.domain.mapping import Side

if TYPE_CHECKING:
    from crmsync.domain.mapping import Association, AssociationResolver, Mapping
    from crmsync.domain.ports import Instance, RecordType

log = getLogger(__name__)


class Associator:
    def __init__(self, resolver: AssociationResolver) -> None:
        self._resolver = resolver

    def materialize(self, mapping: Mapping, source: Instance) -> Instance:
        """Create the counterpart of ``source`` and link its associations.

        Returns the created record. If anything fails after creation, the created
        record is destroyed again before the error propagates.
        """

        source_side = mapping.side_of(source)
        if source_side is Side.REMOTE:
            local, remote = self._create_local(mapping, source), source
        else:
            remote = self._create_remote(mapping, source)
            try:
                local = source.update({mapping.lookup_column: remote.identity})
            except Exception:
                _discard(mapping.remote, remote)
                raise

        try:
            local, remote, related = self._associate(mapping, source_side, local, remote)
        except Exception:
            self._compensate(mapping, source_side, local=local, remote=remote)
            raise

        for instance in (local, remote, *related):
            instance.mark_synced()
        return local if source_side is Side.REMOTE else remote

    def _create_local(self, mapping: Mapping, remote: Instance) -> Instance:
        attribute_map = mapping.attribute_map
        attributes = attribute_map.convert(
            Side.LOCAL,
            attribute_map.attributes_from(Side.REMOTE, remote.attributes),
        )
        attributes[mapping.lookup_column] = remote.identity
        return mapping.local.create(attributes)

    def _create_remote(self, mapping: Mapping, local: Instance) -> Instance:
        attribute_map = mapping.attribute_map
        attributes = attribute_map.convert(
            Side.REMOTE,
            attribute_map.attributes_from(Side.LOCAL, local.attributes),
        )
        return mapping.remote.create(attributes)

    def _associate(
        self,
        mapping: Mapping,
        source_side: Side,
        local: Instance,
        remote: Instance,
    ) -> tuple[Instance, Instance, list[Instance]]:
        source = remote if source_side is Side.REMOTE else local
        created_side = source_side.other
        touched: list[Instance] = []

        for association in mapping.associations:
            target = self._resolver.target(association)
            related = self._resolver.related(mapping, association, source)
            if association.is_belongs_to:
                # A record belongs to at most one parent per association.
                related = related[:1]
            for record in related:
                counterpart = self._counterpart(target, record, created_side)
                if counterpart is None:
                    continue
                if created_side is Side.LOCAL:
                    local, counterpart = _link_local(association, local, counterpart)
                else:
                    remote, counterpart = _link_remote(association, remote, counterpart)
                touched.append(counterpart)

        return local, remote, touched

    def _counterpart(self, target: Mapping, record: Instance, side: Side) -> Instance | None:
        """Find or build ``record``'s counterpart on ``side`` within ``target``."""

        if record.identity:
            found = (target.local if side is Side.LOCAL else target.remote).find(record.identity)
            if found is not None or side is Side.REMOTE:
                return found

        strategy = target.strategy
        if not (strategy.sync_to_local if side is Side.LOCAL else strategy.sync_to_remote):
            log.debug(f"Not building {target.key} on the {side} side; direction disabled")
            return None
        log.debug(f"Building associated {target.key} record on the {side} side")
        return self.materialize(target, record)

    @staticmethod
    def _compensate(
        mapping: Mapping,
        source_side: Side,
        *,
        local: Instance,
        remote: Instance,
    ) -> None:
        if source_side is Side.REMOTE:
            _discard(mapping.local, local)
            return
        _discard(mapping.remote, remote)
        try:
            local.update({mapping.lookup_column: None})
        except ReconciliationError:
            log.exception(f"Could not clear {mapping.lookup_column} on {mapping.local_type}")


def _link_local(
    association: Association,
    local: Instance,
    counterpart: Instance,
) -> tuple[Instance, Instance]:
    if association.foreign_key is None:
        return local, counterpart
    if association.is_belongs_to:
        return local.update({association.foreign_key: counterpart.key}), counterpart
    return local, counterpart.update({association.foreign_key: local.key})


def _link_remote(
    association: Association,
    remote: Instance,
    counterpart: Instance,
) -> tuple[Instance, Instance]:
    if association.is_belongs_to:
        links = dict.fromkeys(association.lookup_fields, counterpart.identity)
        return remote.update(links), counterpart
    return remote, counterpart.update({association.lookup_field: remote.identity})


def _discard(record_type: RecordType, instance: Instance) -> None:
    if not instance.identity:
        return
    try:
        record_type.destroy_all([instance.identity])
    except ReconciliationError:
        log.exception(f"Could not discard partially created record {instance.identity}")
