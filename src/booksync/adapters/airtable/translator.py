"""Translate between Airtable booking rows and domain records."""

from __future__ import annotations

from datetime import UTC
from decimal import Decimal
from typing import TYPE_CHECKING

from booksync.domain.model import (
    BookingFields,
    BookingRecord,
    BookingStatus,
    StaffRef,
    format_addons,
    parse_addons,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .schema import AirtableRecordPayload


def _staff(ids: Iterable[str]) -> frozenset[StaffRef]:
    return frozenset(StaffRef(staff_id=staff_id) for staff_id in ids if staff_id)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_booking_record(payload: AirtableRecordPayload) -> BookingRecord:
    """Domain record for one Airtable row.

    A missing status is read as ``PEND``. An add-on cell that does not follow the
    stored format raises ``ValidationError`` rather than being dropped, since the
    next full-field write would otherwise erase it.
    """

    row = payload.fields
    fields = BookingFields(
        booking_code=row.booking_code,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        status=row.status or BookingStatus.PEND,
        total_amount=row.total_amount if row.total_amount is not None else Decimal(0),
        booking_items=row.booking_items,
        addons=parse_addons(row.addons),
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        booked_at=row.booked_at,
        booking_date=row.booking_date,
        end_date=row.end_date,
        created_date=row.created_date,
        start_time=row.start_time,
        finish_time=row.finish_time,
        duration=row.duration,
        onboarding_staff=_staff(row.onboarding_employee),
        deloading_staff=_staff(row.deloading_employee),
    )
    return BookingRecord(record_id=payload.id, fields=fields, created_at=payload.created_time)


def booking_fields_to_row(fields: BookingFields) -> dict[str, object]:
    """Complete cell mapping for a write; empty values clear the cell."""

    addons = format_addons(fields.addons)
    return {
        "Booking Code": fields.booking_code,
        "Customer Name": fields.customer_name,
        "Customer Email": fields.customer_email,
        "Status": fields.status,
        "Total Amount": float(fields.total_amount),
        "Booking Items": fields.booking_items,
        "Add-ons": addons or None,
        "Start At": _iso(fields.starts_at),
        "End At": _iso(fields.ends_at),
        "Booked At": _iso(fields.booked_at),
        "Booking Date": fields.booking_date,
        "End Date": fields.end_date,
        "Created Date": fields.created_date,
        "Start Time": fields.start_time,
        "Finish Time": fields.finish_time,
        "Duration": fields.duration,
        "Onboarding Employee": sorted(ref.staff_id for ref in fields.onboarding_staff),
        "Deloading Employee": sorted(ref.staff_id for ref in fields.deloading_staff),
    }


__all__ = ["booking_fields_to_row", "parse_booking_record"]
