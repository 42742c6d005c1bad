"""Public interface for the Salesforce adapter."""

from __future__ import annotations

from .client import SalesforceAuthenticationError, SalesforceClient
from .record_types import SalesforceInstance, SalesforceRecordType
from .schema import DescribeResponse, QueryResponse, TokenResponse

__all__ = [
    "DescribeResponse",
    "QueryResponse",
    "SalesforceAuthenticationError",
    "SalesforceClient",
    "SalesforceInstance",
    "SalesforceRecordType",
    "TokenResponse",
]
