"""Salesforce configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_SALESFORCE_HOST = "login.salesforce.com"
DEFAULT_SALESFORCE_API_VERSION = "v60.0"
SALESFORCE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class SalesforceConfig:
    """Credentials and client settings for the Salesforce REST API."""

    username: str
    password: str
    security_token: str
    client_id: str
    client_secret: str
    host: str = DEFAULT_SALESFORCE_HOST
    api_version: str = DEFAULT_SALESFORCE_API_VERSION
    resilience: ResilienceConfig | None = None

    @property
    def token_url(self) -> str:
        return f"https://{self.host}/services/oauth2/token"


def default_salesforce_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="salesforce",
        timeout_seconds=SALESFORCE_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=4),
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
    )


def get_salesforce_config(*, resilience: ResilienceConfig | None = None) -> SalesforceConfig:
    values = require_env_vars(
        (
            "SALESFORCE_USERNAME",
            "SALESFORCE_PASSWORD",
            "SALESFORCE_SECURITY_TOKEN",
            "SALESFORCE_CLIENT_ID",
            "SALESFORCE_CLIENT_SECRET",
        )
    )
    return SalesforceConfig(
        username=values["SALESFORCE_USERNAME"],
        password=values["SALESFORCE_PASSWORD"],
        security_token=values["SALESFORCE_SECURITY_TOKEN"],
        client_id=values["SALESFORCE_CLIENT_ID"],
        client_secret=values["SALESFORCE_CLIENT_SECRET"],
        host=os.getenv("SALESFORCE_HOST") or DEFAULT_SALESFORCE_HOST,
        api_version=os.getenv("SALESFORCE_API_VERSION") or DEFAULT_SALESFORCE_API_VERSION,
        resilience=resilience or default_salesforce_resilience(),
    )
