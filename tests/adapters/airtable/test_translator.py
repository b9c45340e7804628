from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from booksync.adapters.airtable import (
    AirtableRecordPayload,
    booking_fields_to_row,
    parse_booking_record,
)
from booksync.domain.errors import ValidationError
from booksync.domain.model import AddOn
from tests.helpers.bookings import make_fields, staff


def _payload(**fields: object) -> AirtableRecordPayload:
    return AirtableRecordPayload.model_validate(
        {"id": "rec1", "createdTime": "2025-03-01T00:00:00.000Z", "fields": fields}
    )


def test_parse_row() -> None:
    record = parse_booking_record(
        _payload(
            **{
                "Booking Code": "MBH-1001",
                "Status": "PAID",
                "Total Amount": 250.5,
                "Add-ons": "2 x Fishing Rod - $10.00",
                "Onboarding Employee": ["recAlex"],
                "Customer Email": "  ",
            }
        )
    )

    assert record.record_id == "rec1"
    assert record.created_at == datetime(2025, 3, 1, tzinfo=UTC)
    assert record.status == "PAID"
    assert record.total_amount == Decimal("250.5")
    assert record.fields.addons == (AddOn(name="Fishing Rod", quantity=2, unit_price=Decimal(10)),)
    assert record.fields.onboarding_staff == staff("recAlex")
    assert record.fields.customer_email is None


def test_missing_status_and_amount_defaults() -> None:
    record = parse_booking_record(_payload())

    assert record.status == "PEND"
    assert record.total_amount == Decimal(0)


def test_malformed_addons_are_not_silently_dropped() -> None:
    with pytest.raises(ValidationError):
        parse_booking_record(_payload(**{"Add-ons": "Kayak (x2)"}))


def test_row_carries_every_field() -> None:
    row = booking_fields_to_row(
        make_fields(
            status="PART",
            total_amount=Decimal("99.95"),
            deloading_staff=staff("recB", "recA"),
        )
    )

    assert row["Status"] == "PART"
    assert row["Total Amount"] == pytest.approx(99.95)
    assert row["Add-ons"] is None
    assert row["Duration"] == "2 hours 30 minutes"
    assert row["Start At"] == "2025-03-14T23:00:00Z"
    assert row["Deloading Employee"] == ["recA", "recB"]
    assert row["Onboarding Employee"] == []
