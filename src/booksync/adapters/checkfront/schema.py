"""Pydantic models describing the Checkfront booking webhook."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _to_decimal(value: object) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal(0)
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}") from None


class CheckfrontBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ItemPayload(CheckfrontBaseModel):
    sku: str = ""
    qty: int = 1
    total: Decimal = Decimal(0)
    category_id: str | None = None

    @field_validator("sku", mode="before")
    @classmethod
    def _normalize_sku(cls, value: object) -> object:
        return "" if value is None else str(value).strip()

    @field_validator("qty", mode="before")
    @classmethod
    def _parse_qty(cls, value: object) -> int:
        try:
            quantity = int(str(value).strip())
        except (TypeError, ValueError):
            return 1
        return quantity if quantity > 0 else 1

    @field_validator("total", mode="before")
    @classmethod
    def _parse_total(cls, value: object) -> Decimal:
        return _to_decimal(value)

    @field_validator("category_id", mode="before")
    @classmethod
    def _normalize_category(cls, value: object) -> object:
        if value is None:
            return None
        return _blank_to_none(str(value))


class ItemsPayload(CheckfrontBaseModel):
    item: list[ItemPayload] = Field(default_factory=list)

    @field_validator("item", mode="before")
    @classmethod
    def _ensure_list(cls, value: object) -> object:
        # a single item arrives as an object rather than a one-element list
        if value is None:
            return []
        if isinstance(value, Mapping):
            return [cast(Mapping[str, object], value)]
        return value


class OrderPayload(CheckfrontBaseModel):
    total: Decimal | None = None
    items: ItemsPayload = Field(default_factory=ItemsPayload)

    @field_validator("total", mode="before")
    @classmethod
    def _parse_total(cls, value: object) -> Decimal | None:
        if value is None:
            return None
        return _to_decimal(value)


class CustomerPayload(CheckfrontBaseModel):
    name: str | None = None
    email: str | None = None

    _normalize = field_validator("name", "email", mode="before")(_blank_to_none)


class BookingPayload(CheckfrontBaseModel):
    code: str | None = None
    status: str | None = None
    customer: CustomerPayload = Field(default_factory=CustomerPayload)
    order: OrderPayload = Field(default_factory=OrderPayload)
    start_date: int | None = None
    end_date: int | None = None
    created_date: int | None = None

    _normalize = field_validator("code", "status", mode="before")(_blank_to_none)

    @field_validator("start_date", "end_date", "created_date", mode="before")
    @classmethod
    def _parse_epoch(cls, value: object) -> int | None:
        # 0 and blanks mean "not provided"
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        seconds = int(_to_decimal(value))
        return seconds or None


class WebhookPayload(CheckfrontBaseModel):
    booking: BookingPayload = Field(default_factory=BookingPayload)
