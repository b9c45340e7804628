"""Pydantic models describing the Airtable REST payloads for the bookings table."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class AirtableBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BookingFieldsPayload(AirtableBaseModel):
    booking_code: str | None = Field(default=None, alias="Booking Code")
    customer_name: str | None = Field(default=None, alias="Customer Name")
    customer_email: str | None = Field(default=None, alias="Customer Email")
    status: str | None = Field(default=None, alias="Status")
    total_amount: Decimal | None = Field(default=None, alias="Total Amount")
    booking_items: str | None = Field(default=None, alias="Booking Items")
    addons: str | None = Field(default=None, alias="Add-ons")
    starts_at: datetime | None = Field(default=None, alias="Start At")
    ends_at: datetime | None = Field(default=None, alias="End At")
    booked_at: datetime | None = Field(default=None, alias="Booked At")
    booking_date: str | None = Field(default=None, alias="Booking Date")
    end_date: str | None = Field(default=None, alias="End Date")
    created_date: str | None = Field(default=None, alias="Created Date")
    start_time: str | None = Field(default=None, alias="Start Time")
    finish_time: str | None = Field(default=None, alias="Finish Time")
    duration: str | None = Field(default=None, alias="Duration")
    onboarding_employee: list[str] = Field(default_factory=list, alias="Onboarding Employee")
    deloading_employee: list[str] = Field(default_factory=list, alias="Deloading Employee")

    _normalize_text = field_validator(
        "booking_code",
        "customer_name",
        "customer_email",
        "status",
        "booking_items",
        "addons",
        "booking_date",
        "end_date",
        "created_date",
        "start_time",
        "finish_time",
        "duration",
        mode="before",
    )(_blank_to_none)

    @field_validator("total_amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: object) -> object:
        if isinstance(value, float):
            return Decimal(str(value))
        return _blank_to_none(value)


class AirtableRecordPayload(AirtableBaseModel):
    id: str
    created_time: datetime | None = Field(default=None, alias="createdTime")
    fields: BookingFieldsPayload = Field(default_factory=BookingFieldsPayload)


class RecordListResponse(AirtableBaseModel):
    records: list[AirtableRecordPayload] = Field(default_factory=list)
    offset: str | None = None


class DeletedRecordPayload(AirtableBaseModel):
    id: str
    deleted: bool


class DeleteResponse(AirtableBaseModel):
    records: list[DeletedRecordPayload] = Field(default_factory=list)


class ErrorDetail(AirtableBaseModel):
    type: str
    message: str | None = None


class ErrorResponse(AirtableBaseModel):
    error: ErrorDetail | str

    @property
    def description(self) -> str:
        if isinstance(self.error, str):
            return self.error
        return f"{self.error.type}: {self.error.message or ''}".rstrip(": ")
