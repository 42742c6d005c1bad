"""Shared fixtures for Salesforce adapter tests."""

from __future__ import annotations

import pytest

from crmsync.adapters.http_resilience import ResilienceConfig
from crmsync.adapters.salesforce import SalesforceClient
from crmsync.config.salesforce import SalesforceConfig
from tests.support.salesforce import FakeSalesforceClient, SalesforceStub, make_client_factory


@pytest.fixture
def salesforce_config() -> SalesforceConfig:
    return SalesforceConfig(
        username="integration@example.com",
        password="hunter2",  # noqa: S106
        security_token="TOKEN",  # noqa: S106
        client_id="client-id",
        client_secret="client-secret",  # noqa: S106
        resilience=ResilienceConfig(name="salesforce-test"),
    )


@pytest.fixture
def salesforce_stub() -> SalesforceStub:
    return SalesforceStub()


@pytest.fixture
def salesforce_client(
    salesforce_config: SalesforceConfig,
    salesforce_stub: SalesforceStub,
) -> SalesforceClient:
    return SalesforceClient(
        config=salesforce_config,
        client_factory=make_client_factory(salesforce_stub.handle),
    )


@pytest.fixture
def fake_salesforce() -> FakeSalesforceClient:
    return FakeSalesforceClient()
