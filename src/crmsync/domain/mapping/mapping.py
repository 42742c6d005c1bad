"""Binding of one local entity type to one remote entity type."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from crmsync.domain.errors import MappingConfigurationError

from .enums import Side
from .strategies import Always, Associated

if TYPE_CHECKING:
    from crmsync.domain.ports import Instance, LocalRecordType, RecordType

    from .associations import Association
    from .attribute_map import AttributeMap
    from .strategies import Strategy


@dataclass(frozen=True, slots=True)
class Mapping:
    """Immutable pairing configuration.

    The lookup column is owned by the local record type and is the sole join key
    between the two stores: a local record is paired when its lookup column holds
    the remote identity.
    """

    local: LocalRecordType
    remote: RecordType
    attribute_map: AttributeMap
    strategy: Strategy = field(default_factory=Always)
    associations: tuple[Association, ...] = ()
    conditions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if (self.attribute_map.local_type, self.attribute_map.remote_type) != (
            self.local_type,
            self.remote_type,
        ):
            raise MappingConfigurationError(
                f"Attribute map for {self.attribute_map.local_type}/"
                f"{self.attribute_map.remote_type} used with {self.local_type}/{self.remote_type}"
            )
        if not self.local.has_field(self.lookup_column):
            raise MappingConfigurationError(
                f"{self.local_type} has no lookup column {self.lookup_column!r}"
            )
        if self.lookup_column in self.attribute_map.fields:
            raise MappingConfigurationError(
                f"Lookup column {self.lookup_column!r} must not be a mapped attribute"
            )

        names = [association.name for association in self.associations]
        if len(set(names)) != len(names):
            raise MappingConfigurationError(f"Duplicate association names on {self.key}")
        for association in self.associations:
            if (
                association.is_belongs_to
                and association.foreign_key is not None
                and not self.local.has_field(association.foreign_key)
            ):
                raise MappingConfigurationError(
                    f"{self.local_type} has no foreign key column {association.foreign_key!r}"
                )
        if isinstance(self.strategy, Associated) and self.strategy.via not in names:
            raise MappingConfigurationError(
                f"Strategy for {self.key} refers to unknown association {self.strategy.via!r}"
            )

    @property
    def local_type(self) -> str:
        return self.local.name

    @property
    def remote_type(self) -> str:
        return self.remote.name

    @property
    def lookup_column(self) -> str:
        return self.local.lookup_column

    @property
    def key(self) -> str:
        return f"{self.local_type}:{self.remote_type}"

    def record_type(self, side: Side) -> RecordType:
        return self.local if side is Side.LOCAL else self.remote

    def side_of(self, instance: Instance) -> Side:
        return self.attribute_map.side_of(instance.record_type.name)

    def is_paired(self, instance: Instance) -> bool:
        """Whether ``instance`` already has a counterpart linked through the lookup column."""

        if self.side_of(instance) is Side.LOCAL:
            return bool(instance.identity)
        if not instance.identity:
            return False
        return self.local.find(instance.identity) is not None

    def association(self, name: str) -> Association:
        for association in self.associations:
            if association.name == name:
                return association
        raise MappingConfigurationError(f"{self.key} has no association named {name!r}")
