"""HTTP client for the Salesforce REST API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from crmsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from crmsync.config.errors import ConfigurationError
from crmsync.config.salesforce import (
    SalesforceConfig,
    default_salesforce_resilience,
    get_salesforce_config,
)
from crmsync.domain.errors import DuplicateRecordError, PersistenceError, TransientError

from .schema import (
    ERROR_LIST,
    CreateResponse,
    DescribeResponse,
    QueryResponse,
    TokenErrorResponse,
    TokenResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = getLogger(__name__)

_DUPLICATE_CODES = frozenset({"DUPLICATE_VALUE", "DUPLICATES_DETECTED"})


class SalesforceAuthenticationError(ConfigurationError):
    """Raised when Salesforce rejects the configured credentials."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class SalesforceClient:
    """Synchronous facade over the async REST calls the record types need.

    The OAuth token is fetched lazily and reused until Salesforce answers 401.
    """

    config: SalesforceConfig = field(default_factory=get_salesforce_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _token: TokenResponse | None = field(default=None, init=False, repr=False)

    @property
    def resilience(self) -> ResilienceConfig:
        return self.config.resilience or default_salesforce_resilience()

    @property
    def data_path(self) -> str:
        return f"/services/data/{self.config.api_version}"

    def query(self, soql: str) -> list[dict[str, object]]:
        """Run ``soql`` and return every record, following pagination."""

        return asyncio.run(self._query(soql))

    def create(self, sobject: str, attributes: Mapping[str, object]) -> str:
        """Create one ``sobject`` record and return its id."""

        payload = asyncio.run(
            self._call(
                "POST",
                f"{self.data_path}/sobjects/{sobject}/",
                json=dict(attributes),
                attributes=attributes,
            )
        )
        created = CreateResponse.model_validate(payload)
        if not created.success:
            raise _persistence_error(
                [error.model_dump(by_alias=True) for error in created.errors],
                attributes=attributes,
            )
        return created.id

    def update(self, sobject: str, identity: str, attributes: Mapping[str, object]) -> None:
        asyncio.run(
            self._call(
                "PATCH",
                f"{self.data_path}/sobjects/{sobject}/{identity}",
                json=dict(attributes),
                identity=identity,
                attributes=attributes,
            )
        )

    def delete(self, sobject: str, identity: str) -> None:
        """Delete one record; records that are already gone are ignored."""

        asyncio.run(
            self._call(
                "DELETE",
                f"{self.data_path}/sobjects/{sobject}/{identity}",
                identity=identity,
                missing_ok=True,
            )
        )

    def describe(self, sobject: str) -> DescribeResponse:
        payload = asyncio.run(self._call("GET", f"{self.data_path}/sobjects/{sobject}/describe/"))
        return DescribeResponse.model_validate(payload)

    async def _query(self, soql: str) -> list[dict[str, object]]:
        async with self.client_factory(self.resilience) as client:
            page = QueryResponse.model_validate(
                await self._request(client, "GET", f"{self.data_path}/query/", params={"q": soql})
            )
            records = list(page.records)
            while not page.done and page.next_records_url:
                page = QueryResponse.model_validate(
                    await self._request(client, "GET", page.next_records_url)
                )
                records.extend(page.records)
        log.debug(f"SOQL returned {len(records)} records: {soql}")
        return [_strip_attributes(record) for record in records]

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: object = None,
        identity: str | None = None,
        attributes: Mapping[str, object] | None = None,
        missing_ok: bool = False,
    ) -> object:
        async with self.client_factory(self.resilience) as client:
            return await self._request(
                client,
                method,
                path,
                json=json,
                identity=identity,
                attributes=attributes,
                missing_ok=missing_ok,
            )

    async def _request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: object = None,
        identity: str | None = None,
        attributes: Mapping[str, object] | None = None,
        missing_ok: bool = False,
    ) -> object:
        response = await self._send(client, method, path, params=params, json=json)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.info("Salesforce session expired, authenticating again")
            self._token = None
            response = await self._send(client, method, path, params=params, json=json)

        if response.status_code == httpx.codes.NOT_FOUND and missing_ok:
            return None
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS or response.status_code >= 500:
            raise TransientError(
                f"Salesforce {method} {path} failed with status {response.status_code}"
            )
        if response.is_error:
            raise _persistence_error(
                _error_payload(response), identity=identity, attributes=attributes
            )
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()

    async def _send(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None,
        json: object,
    ) -> httpx.Response:
        token = self._token or await self._authenticate(client)
        url = path if path.startswith("http") else f"{token.instance_url}{path}"
        headers = {"Authorization": f"{token.token_type} {token.access_token}"}
        try:
            if json is None:
                return await client.request(method, url, params=params, headers=headers)
            return await client.request(method, url, params=params, headers=headers, json=json)
        except httpx.HTTPError as exc:
            raise TransientError(f"Salesforce {method} {path} failed: {exc}") from exc

    async def _authenticate(self, client: ResilientClient) -> TokenResponse:
        config = self.config
        form = {
            "grant_type": "password",
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "username": config.username,
            "password": f"{config.password}{config.security_token}",
        }
        try:
            response = await client.post(config.token_url, data=form)
        except httpx.HTTPError as exc:
            raise TransientError(f"Salesforce authentication failed: {exc}") from exc

        if response.status_code >= 500:
            raise TransientError(f"Salesforce authentication failed with {response.status_code}")
        if response.is_error:
            try:
                error = TokenErrorResponse.model_validate(response.json())
                message = f"{error.error}: {error.error_description or ''}".rstrip(": ")
            except (ValueError, ValidationError):
                message = response.text
            log.error(f"Salesforce authentication rejected: {message}")
            raise SalesforceAuthenticationError(message)

        self._token = TokenResponse.model_validate(response.json())
        log.debug(f"Authenticated against {self._token.instance_url}")
        return self._token


def _strip_attributes(record: dict[str, object]) -> dict[str, object]:
    return {name: value for name, value in record.items() if name != "attributes"}


def _error_payload(response: httpx.Response) -> list[dict[str, object]]:
    try:
        errors = ERROR_LIST.validate_json(response.content)
        return [error.model_dump(by_alias=True) for error in errors]
    except ValidationError:
        return [{"message": response.text or response.reason_phrase, "errorCode": "UNKNOWN"}]


def _persistence_error(
    errors: list[dict[str, object]],
    *,
    identity: str | None = None,
    attributes: Mapping[str, object] | None = None,
) -> PersistenceError:
    message = "; ".join(f"{error.get('errorCode')}: {error.get('message')}" for error in errors)
    codes = {error.get("errorCode") for error in errors}
    error_type = DuplicateRecordError if codes & _DUPLICATE_CODES else PersistenceError
    return error_type(message, identity=identity, attributes=attributes)
