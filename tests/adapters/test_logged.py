from __future__ import annotations

import logging

import pytest

from crmsync.adapters.logged import LoggedInstance, LoggedRecordType, logged
from crmsync.domain.errors import PersistenceError
from crmsync.domain.mapping import AttributeMap, Mapping
from tests.support.crm import CONTACT_FIELDS, CrmWorld

LOGGER = "crmsync.adapters.logged"


def test_create_and_update_are_logged(world: CrmWorld, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER)
    contacts = logged(world.local_contacts)

    created = contacts.create({"name": "Ada", "salesforce_id": "003A"})
    updated = created.update({"name": "Ada Lovelace"})

    assert isinstance(created, LoggedInstance)
    assert isinstance(updated, LoggedInstance)
    assert updated.attributes["name"] == "Ada Lovelace"
    messages = [record.getMessage() for record in caplog.records]
    assert messages[0].startswith("Created contacts 003A")
    assert messages[1].startswith("Updated contacts 003A")
    assert "{'name': 'Ada Lovelace'}" in messages[1]


def test_failures_are_logged_and_reraised(
    world: CrmWorld,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER)
    world.local_contacts.fail_create = PersistenceError("lookup taken")
    contacts = logged(world.local_contacts)

    with pytest.raises(PersistenceError, match="lookup taken"):
        contacts.create({"name": "Ada"})

    [record] = caplog.records
    assert record.levelno == logging.ERROR
    assert "Create of contacts failed: lookup taken" in record.getMessage()


def test_wrapper_passes_adapter_attributes_through(world: CrmWorld) -> None:
    world.local_contacts.insert(name="Ada", salesforce_id="003A")
    contacts = logged(world.local_contacts)

    assert isinstance(contacts, LoggedRecordType)
    assert contacts.lookup_column == "salesforce_id"
    assert contacts.name == "contacts"
    found = contacts.find("003A")
    assert found is not None
    assert found.record_type is contacts
    assert found.is_paired
    assert contacts.find("003B") is None


def test_logged_record_types_reconcile_like_the_wrapped_ones(
    world: CrmWorld,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER)
    remote = world.remote_contacts.insert(Name="Ada")
    mapping = Mapping(
        local=logged(world.local_contacts),
        remote=logged(world.remote_contacts),
        attribute_map=AttributeMap("contacts", "Contact", CONTACT_FIELDS),
    )

    result = world.engine(world.registry(mapping)).run_mapping(mapping)

    assert result.initialized.created_local == 1
    assert world.local_contacts.find(remote.identity) is not None
    assert any(
        record.getMessage().startswith(f"Created contacts {remote.identity}")
        for record in caplog.records
    )
