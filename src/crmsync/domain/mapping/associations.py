"""Cross-entity links and their resolution on either side of a mapping.

A ``belongs_to`` association keeps its lookup field(s) on this mapping's remote
type; ``has_one``/``has_many`` keep the single lookup field on the associated
remote type, pointing back at this record's identity. On the local side the link
is a foreign key column holding the linked local record's key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from crmsync.domain.errors import MappingConfigurationError

from .enums import AssociationKind, Cardinality, Side

if TYPE_CHECKING:
    from collections.abc import Sequence

    from crmsync.domain.ports import Instance

    from .mapping import Mapping
    from .registry import MappingRegistry


@dataclass(frozen=True, slots=True)
class Association:
    name: str
    target: str
    direction: AssociationKind
    lookup_fields: tuple[str, ...]
    foreign_key: str | None = None

    def __post_init__(self) -> None:
        if not self.lookup_fields:
            raise MappingConfigurationError(f"Association {self.name!r} needs a lookup field")
        if self.direction is not AssociationKind.BELONGS_TO and len(self.lookup_fields) != 1:
            raise MappingConfigurationError(
                f"Association {self.name!r} ({self.direction}) must declare exactly one "
                "canonical lookup field"
            )

    @classmethod
    def belongs_to(
        cls,
        name: str,
        target: str,
        *,
        through: str | Sequence[str],
        foreign_key: str | None = None,
    ) -> Association:
        lookups = (through,) if isinstance(through, str) else tuple(through)
        return cls(name, target, AssociationKind.BELONGS_TO, lookups, foreign_key)

    @classmethod
    def has_one(
        cls,
        name: str,
        target: str,
        *,
        through: str,
        foreign_key: str | None = None,
    ) -> Association:
        return cls(name, target, AssociationKind.HAS_ONE, (through,), foreign_key)

    @classmethod
    def has_many(
        cls,
        name: str,
        target: str,
        *,
        through: str,
        foreign_key: str | None = None,
    ) -> Association:
        return cls(name, target, AssociationKind.HAS_MANY, (through,), foreign_key)

    @property
    def cardinality(self) -> Cardinality:
        return Cardinality.MANY if self.direction is AssociationKind.HAS_MANY else Cardinality.ONE

    @property
    def lookup_field(self) -> str:
        return self.lookup_fields[0]

    @property
    def is_belongs_to(self) -> bool:
        return self.direction is AssociationKind.BELONGS_TO


class AssociationResolver:
    """Look up the records an association points at, on the instance's own side."""

    def __init__(self, registry: MappingRegistry) -> None:
        self._registry = registry

    def target(self, association: Association) -> Mapping:
        return self._registry.for_local(association.target)

    def related(
        self,
        mapping: Mapping,
        association: Association,
        instance: Instance,
    ) -> list[Instance]:
        """Return the existing records ``association`` links ``instance`` to."""

        target = self.target(association)
        if mapping.side_of(instance) is Side.REMOTE:
            if association.is_belongs_to:
                identities = _lookups(association, instance)
                found = (target.remote.find(identity) for identity in identities)
                return [related for related in found if related is not None]
            if instance.identity is None:
                return []
            return list(target.remote.find_all(association.lookup_field, instance.identity))

        if association.foreign_key is None:
            return []
        if association.is_belongs_to:
            parent_key = instance.attributes.get(association.foreign_key)
            if parent_key is None:
                return []
            parent = target.local.get(parent_key)
            return [parent] if parent is not None else []
        return list(target.local.find_all(association.foreign_key, instance.key))

    def has_paired_counterpart(
        self,
        mapping: Mapping,
        association: Association,
        instance: Instance,
    ) -> bool:
        """Whether ``association`` already resolves to a paired record."""

        target = self.target(association)
        if mapping.side_of(instance) is Side.REMOTE and association.is_belongs_to:
            # The lookup value is already the remote identity; no need to fetch the parent.
            return any(
                target.local.find(identity) is not None
                for identity in _lookups(association, instance)
            )
        related = self.related(mapping, association, instance)
        return any(target.is_paired(record) for record in related)


def _lookups(association: Association, instance: Instance) -> list[str]:
    identities: list[str] = []
    for lookup in association.lookup_fields:
        value = instance.attributes.get(lookup)
        if value and str(value) not in identities:
            identities.append(str(value))
    return identities
