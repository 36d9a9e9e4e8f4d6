"""
app/schemas/upload.py

Request and response schemas for upload endpoints.

Wire names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.validators.transaction_validator import TransactionRowValidator

DataSourceTypeName = Literal["shopify", "quickbooks", "google_sheets", "csv", "manual"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRecordPayload(CamelModel):
    """
    One pre-validated transaction as submitted by the client.

    The row rules are re-applied here because the client is not trusted.
    """

    date: str
    amount: Decimal
    description: str | None = None
    category: str | None = None
    customer: str | None = None
    product: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _require_date(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            raise ValueError("Date is required")
        return value.strip() if isinstance(value, str) else value

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        amount = TransactionRowValidator.coerce_amount(value)
        if amount is None:
            raise ValueError("Amount must be a valid number")
        return amount

    @field_validator("description", "category", "customer", "product", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value


class UploadRequest(CamelModel):
    data: list[TransactionRecordPayload] = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1, max_length=255)
    data_source_type: DataSourceTypeName = "csv"


class DateRangeResponse(CamelModel):
    start: str | None = None
    end: str | None = None


class IngestionSummaryResponse(CamelModel):
    total_rows: int = Field(..., ge=0)
    processed_rows: int = Field(..., ge=0)
    failed_rows: int = Field(default=0, ge=0)
    failed_batches: int = Field(default=0, ge=0)
    categories: list[str] = Field(default_factory=list)
    date_range: DateRangeResponse


class RowErrorResponse(CamelModel):
    row: int = Field(..., ge=1)
    field: str
    code: str
    message: str
    value: str | None = None


class UploadResultData(CamelModel):
    data_source_id: uuid.UUID
    metrics_created: int = Field(..., ge=0)
    file_name: str
    summary: IngestionSummaryResponse
    warnings: list[RowErrorResponse] = Field(default_factory=list)


class UploadResponse(CamelModel):
    success: bool = True
    data: UploadResultData


class DataSourceResponse(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    organization_id: uuid.UUID
    type: str
    name: str
    is_active: bool
    last_sync: datetime | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class DataSourceListResponse(CamelModel):
    success: bool = True
    data: list[DataSourceResponse]


class ValidationSummaryResponse(CamelModel):
    total_rows: int = Field(..., ge=0)
    valid_rows: int = Field(..., ge=0)
    invalid_rows: int = Field(..., ge=0)
    categories: list[str] = Field(default_factory=list)
    date_range: DateRangeResponse
    total_amount: Decimal


class ValidationResultResponse(CamelModel):
    """
    Pre-submission result for one file: the accepted rows plus row errors.
    """

    success: bool = True
    file_name: str
    total_row_count: int = Field(..., ge=0)
    accepted_rows: list[TransactionRecordPayload]
    errors: list[RowErrorResponse] = Field(default_factory=list)
    summary: ValidationSummaryResponse
