"""Pydantic models describing the Salesforce REST API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class SalesforceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TokenResponse(SalesforceBaseModel):
    access_token: str
    instance_url: str
    token_type: str = "Bearer"


class TokenErrorResponse(SalesforceBaseModel):
    error: str
    error_description: str | None = None


class ErrorItem(SalesforceBaseModel):
    message: str
    error_code: str = Field(alias="errorCode")
    fields: list[str] = Field(default_factory=list)


class QueryResponse(SalesforceBaseModel):
    total_size: int = Field(alias="totalSize")
    done: bool
    records: list[dict[str, object]]
    next_records_url: str | None = Field(default=None, alias="nextRecordsUrl")


class CreateResponse(SalesforceBaseModel):
    id: str
    success: bool
    errors: list[ErrorItem] = Field(default_factory=list)


class FieldDescription(SalesforceBaseModel):
    name: str
    type: str | None = None
    updateable: bool = False


class DescribeResponse(SalesforceBaseModel):
    name: str
    fields: list[FieldDescription]

    def field_names(self) -> frozenset[str]:
        return frozenset(field.name for field in self.fields)


ERROR_LIST = TypeAdapter(list[ErrorItem])
