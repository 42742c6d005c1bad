from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from crmsync.domain.errors import MappingConfigurationError
from crmsync.domain.mapping import AttributeMap, DateTimeConverter, Side

FIELDS = {"name": "Name", "email": "Email", "born_on": "Birthdate"}


@pytest.fixture
def attribute_map() -> AttributeMap:
    return AttributeMap("contacts", "Contact", FIELDS)


def test_attributes_from_remote_reads_declared_fields(attribute_map: AttributeMap) -> None:
    values = {"Id": "C1", "Name": "Ada", "Email": "ada@example.com", "Phone": "123"}

    assert attribute_map.attributes_from(Side.REMOTE, values) == {
        "name": "Ada",
        "email": "ada@example.com",
    }


def test_attributes_from_local_keeps_partial_snapshots(attribute_map: AttributeMap) -> None:
    values = {"id": 4, "name": "Ada", "salesforce_id": "C1"}

    assert attribute_map.attributes_from("contacts", values) == {"name": "Ada"}


def test_convert_to_remote_renders_dates(attribute_map: AttributeMap) -> None:
    converted = attribute_map.convert(
        Side.REMOTE,
        {"name": "Ada", "born_on": date(1815, 12, 10), "unmapped": 1},
    )

    assert converted == {"Name": "Ada", "Birthdate": "1815-12-10"}


def test_convert_to_local_copies(attribute_map: AttributeMap) -> None:
    canonical = {"name": "Ada", "unmapped": 1}

    converted = attribute_map.convert(Side.LOCAL, canonical)

    assert converted == canonical
    assert converted is not canonical


def test_convert_from_remote(attribute_map: AttributeMap) -> None:
    remote = {"Name": "Ada", "Unknown__c": True}

    assert attribute_map.convert_from_remote(Side.LOCAL, remote) == {"name": "Ada"}
    assert attribute_map.convert_from_remote(Side.REMOTE, remote) == remote


def test_round_trip_through_remote_schema(attribute_map: AttributeMap) -> None:
    canonical = {"name": "Ada", "email": "ada@example.com", "born_on": "1815-12-10"}

    remote = attribute_map.convert(Side.REMOTE, canonical)

    assert attribute_map.convert_from_remote(Side.LOCAL, remote) == canonical


def test_datetime_converter_round_trip() -> None:
    attribute_map = AttributeMap(
        "events",
        "Event",
        {"starts_at": "StartDateTime"},
        converters={"starts_at": DateTimeConverter()},
    )
    starts_at = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)

    remote = attribute_map.convert(Side.REMOTE, {"starts_at": starts_at})

    assert remote == {"StartDateTime": "2024-05-01T09:30:00Z"}
    assert attribute_map.convert_from_remote(Side.LOCAL, remote) == {"starts_at": starts_at}


def test_unknown_side_is_a_configuration_error(attribute_map: AttributeMap) -> None:
    with pytest.raises(MappingConfigurationError, match="Lead"):
        attribute_map.attributes_from("Lead", {})


@pytest.mark.parametrize(
    ("local_type", "remote_type", "fields", "converters", "message"),
    [
        ("Contact", "Contact", {"name": "Name"}, {}, "must differ"),
        ("contacts", "Contact", {"name": "Name", "full_name": "Name"}, {}, "at most once"),
        ("contacts", "Contact", {"name": "Name"}, {"email": DateTimeConverter()}, "email"),
    ],
)
def test_invalid_attribute_maps_are_rejected(
    local_type: str,
    remote_type: str,
    fields: dict[str, str],
    converters: dict[str, DateTimeConverter],
    message: str,
) -> None:
    with pytest.raises(MappingConfigurationError, match=message):
        AttributeMap(local_type, remote_type, fields, converters)
