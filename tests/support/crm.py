"""A small accounts/contacts CRM used across the reconciliation tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from crmsync.domain.mapping import (
    Always,
    Association,
    AttributeMap,
    Mapping,
    MappingRegistry,
    Passive,
)
from crmsync.domain.reconciliation import ReconciliationEngine, Tracker

from .records import MemoryRecordType, MemoryTrackerStore

if TYPE_CHECKING:
    from crmsync.domain.mapping import Strategy

    from .records import TickingClock

ACTIVE_CONDITION = "Status__c = 'Active'"

ACCOUNT_FIELDS = {"name": "Name", "industry": "Industry"}
CONTACT_FIELDS = {"name": "Name", "email": "Email", "note": "Description", "status": "Status__c"}


@dataclass
class CrmWorld:
    clock: TickingClock
    local_accounts: MemoryRecordType
    remote_accounts: MemoryRecordType
    local_contacts: MemoryRecordType
    remote_contacts: MemoryRecordType
    tracker_store: MemoryTrackerStore

    def account_mapping(
        self,
        strategy: Strategy | None = None,
        *,
        with_contacts: bool = False,
    ) -> Mapping:
        associations = (
            (
                Association.has_many(
                    "contacts", "contacts", through="AccountId", foreign_key="account_id"
                ),
            )
            if with_contacts
            else ()
        )
        return Mapping(
            local=self.local_accounts,
            remote=self.remote_accounts,
            attribute_map=AttributeMap("accounts", "Account", ACCOUNT_FIELDS),
            strategy=strategy or Passive(),
            associations=associations,
        )

    def contact_mapping(
        self,
        strategy: Strategy | None = None,
        *,
        conditions: tuple[str, ...] = (),
    ) -> Mapping:
        return Mapping(
            local=self.local_contacts,
            remote=self.remote_contacts,
            attribute_map=AttributeMap("contacts", "Contact", CONTACT_FIELDS),
            strategy=strategy or Always(),
            associations=(
                Association.belongs_to(
                    "account", "accounts", through="AccountId", foreign_key="account_id"
                ),
            ),
            conditions=conditions,
        )

    def registry(self, *mappings: Mapping) -> MappingRegistry:
        return MappingRegistry(mappings)

    def engine(self, registry: MappingRegistry) -> ReconciliationEngine:
        return ReconciliationEngine(
            registry=registry,
            tracker=Tracker(self.tracker_store, clock=self.clock),
        )


def build_world(clock: TickingClock) -> CrmWorld:
    remote_accounts = MemoryRecordType.remote("Account", ACCOUNT_FIELDS.values(), clock=clock)
    remote_contacts = MemoryRecordType.remote(
        "Contact", [*CONTACT_FIELDS.values(), "AccountId"], clock=clock
    )
    remote_contacts.predicates[ACTIVE_CONDITION] = lambda values: (
        values.get("Status__c") == "Active"
    )
    return CrmWorld(
        clock=clock,
        local_accounts=MemoryRecordType.local("accounts", ACCOUNT_FIELDS, clock=clock),
        remote_accounts=remote_accounts,
        local_contacts=MemoryRecordType.local(
            "contacts", [*CONTACT_FIELDS, "account_id"], clock=clock
        ),
        remote_contacts=remote_contacts,
        tracker_store=MemoryTrackerStore(),
    )
