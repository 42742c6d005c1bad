"""Creation and sync-direction policies for a mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

if TYPE_CHECKING:
    from crmsync.domain.ports import Instance

    from .associations import AssociationResolver
    from .mapping import Mapping


@runtime_checkable
class Strategy(Protocol):
    passive: bool
    sync_to_local: bool
    sync_to_remote: bool

    def should_create(
        self,
        record: Instance,
        *,
        mapping: Mapping,
        resolver: AssociationResolver,
    ) -> bool:
        """Should ``record`` get a counterpart built on the other side?"""
        ...


class Always:
    """Build every unpaired record on the other side; sync both ways."""

    passive: ClassVar[bool] = False
    sync_to_local: ClassVar[bool] = True
    sync_to_remote: ClassVar[bool] = True

    def should_create(
        self,
        record: Instance,
        *,
        mapping: Mapping,
        resolver: AssociationResolver,
    ) -> bool:
        del resolver
        return not mapping.is_paired(record)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))


class AlwaysToLocal(Always):
    sync_to_remote: ClassVar[bool] = False


class AlwaysToRemote(Always):
    sync_to_local: ClassVar[bool] = False


class Passive(Always):
    """Never build records directly; they only appear through another mapping's associations."""

    passive: ClassVar[bool] = True

    def should_create(
        self,
        record: Instance,
        *,
        mapping: Mapping,
        resolver: AssociationResolver,
    ) -> bool:
        del record, mapping, resolver
        return False


@dataclass(frozen=True)
class Associated(Always):
    """Build a record only once its ``via`` association points at a paired record."""

    via: str

    def should_create(
        self,
        record: Instance,
        *,
        mapping: Mapping,
        resolver: AssociationResolver,
    ) -> bool:
        if mapping.is_paired(record):
            return False
        association = mapping.association(self.via)
        return resolver.has_paired_counterpart(mapping, association, record)


__all__ = ["Always", "AlwaysToLocal", "AlwaysToRemote", "Associated", "Passive", "Strategy"]
