"""Bidirectional translation of attribute sets between the local and remote schema.

Canonical attribute names are the local column names. Remote attribute sets are
keyed by remote field names. Every conversion is driven by the declared field
mapping, so undeclared keys never leak across the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from crmsync.domain.errors import MappingConfigurationError

from .enums import Side

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class ValueConverter(Protocol):
    def to_local(self, value: object) -> object: ...

    def to_remote(self, value: object) -> object: ...


class DefaultConverter:
    """Pass values through, rendering dates and times as ISO-8601 for the remote side."""

    def to_local(self, value: object) -> object:
        return value

    def to_remote(self, value: object) -> object:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=UTC)
            return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
        if isinstance(value, date):
            return value.isoformat()
        return value


class DateTimeConverter(DefaultConverter):
    """Like :class:`DefaultConverter`, but parses ISO-8601 strings on the way in."""

    def to_local(self, value: object) -> object:
        if not isinstance(value, str) or not value.strip():
            return value
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)


DEFAULT_CONVERTER = DefaultConverter()


@dataclass(frozen=True, slots=True)
class AttributeMap:
    """Field mapping for one local/remote type pairing."""

    local_type: str
    remote_type: str
    fields: Mapping[str, str]
    converters: Mapping[str, ValueConverter] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.local_type == self.remote_type:
            raise MappingConfigurationError(
                f"Local and remote type names must differ, both are {self.local_type!r}"
            )
        remote_fields = list(self.fields.values())
        if len(set(remote_fields)) != len(remote_fields):
            raise MappingConfigurationError(
                f"Remote fields for {self.local_type} must be mapped at most once"
            )
        unknown = set(self.converters) - set(self.fields)
        if unknown:
            raise MappingConfigurationError(
                f"Converters declared for unmapped attributes: {', '.join(sorted(unknown))}"
            )

    def converter(self, attribute: str) -> ValueConverter:
        return self.converters.get(attribute, DEFAULT_CONVERTER)

    def side_of(self, record_type: Side | str) -> Side:
        """Resolve a side or one of the two configured type names to a :class:`Side`."""

        if isinstance(record_type, Side):
            return record_type
        if record_type == self.local_type:
            return Side.LOCAL
        if record_type == self.remote_type:
            return Side.REMOTE
        raise MappingConfigurationError(
            f"{record_type!r} is neither {self.local_type!r} nor {self.remote_type!r}"
        )

    def attributes_from(
        self,
        source: Side | str,
        values: Mapping[str, object],
    ) -> dict[str, object]:
        """Build a canonical attribute set from a record's native ``values``.

        Only declared fields present in ``values`` are read, so partial snapshots
        stay partial.
        """

        if self.side_of(source) is Side.REMOTE:
            return {
                attribute: self.converter(attribute).to_local(values[remote_field])
                for attribute, remote_field in self.fields.items()
                if remote_field in values
            }
        return {attribute: values[attribute] for attribute in self.fields if attribute in values}

    def convert(self, target: Side | str, attributes: Mapping[str, object]) -> dict[str, object]:
        """Project canonical ``attributes`` into the ``target`` schema."""

        if self.side_of(target) is Side.LOCAL:
            return dict(attributes)
        return {
            remote_field: self.converter(attribute).to_remote(attributes[attribute])
            for attribute, remote_field in self.fields.items()
            if attribute in attributes
        }

    def convert_from_remote(
        self,
        target: Side | str,
        attributes: Mapping[str, object],
    ) -> dict[str, object]:
        """Project remote-schema ``attributes`` into the ``target`` schema."""

        if self.side_of(target) is Side.REMOTE:
            return dict(attributes)
        return {
            attribute: self.converter(attribute).to_local(attributes[remote_field])
            for attribute, remote_field in self.fields.items()
            if remote_field in attributes
        }

    def normalized(self, source: Side | str, values: Mapping[str, object]) -> dict[str, object]:
        """Canonicalise a native snapshot and render it in the remote schema.

        This is the common currency the accumulator compares in.
        """

        return self.convert(Side.REMOTE, self.attributes_from(source, values))
