"""Explicit registry of the mappings one engine reconciles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from crmsync.domain.errors import MappingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .mapping import Mapping


class MappingRegistry:
    """Ordered collection of mappings, keyed by :attr:`Mapping.key`."""

    def __init__(self, mappings: Iterable[Mapping] = ()) -> None:
        self._mappings: dict[str, Mapping] = {}
        for mapping in mappings:
            self.register(mapping)

    def register(self, mapping: Mapping) -> Mapping:
        if mapping.key in self._mappings:
            raise MappingConfigurationError(f"Mapping {mapping.key} is already registered")
        self._mappings[mapping.key] = mapping
        return mapping

    def __iter__(self) -> Iterator[Mapping]:
        return iter(self._mappings.values())

    def __len__(self) -> int:
        return len(self._mappings)

    def __contains__(self, key: object) -> bool:
        return key in self._mappings

    def __getitem__(self, key: str) -> Mapping:
        try:
            return self._mappings[key]
        except KeyError:
            raise MappingConfigurationError(f"No mapping registered as {key}") from None

    def for_local(self, local_type: str) -> Mapping:
        """Return the first mapping registered for ``local_type``."""

        for mapping in self._mappings.values():
            if mapping.local_type == local_type:
                return mapping
        raise MappingConfigurationError(f"No mapping registered for local type {local_type!r}")

    def for_remote(self, remote_type: str) -> list[Mapping]:
        return [
            mapping for mapping in self._mappings.values() if mapping.remote_type == remote_type
        ]

    def validate(self) -> None:
        """Check that every association points at a registered mapping.

        ``has_one``/``has_many`` foreign keys live on the associated local type, so
        they can only be checked once both mappings are known.
        """

        for mapping in self._mappings.values():
            for association in mapping.associations:
                target = self.for_local(association.target)
                if association.is_belongs_to:
                    continue
                if association.foreign_key is not None and not target.local.has_field(
                    association.foreign_key
                ):
                    raise MappingConfigurationError(
                        f"{target.local_type} has no foreign key column "
                        f"{association.foreign_key!r} for {mapping.key}.{association.name}"
                    )
