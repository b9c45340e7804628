"""Booking events, stored field sets and records."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from booksync.domain.model.enums import BookingStatus, EventSource

if TYPE_CHECKING:
    from datetime import datetime

    from booksync.domain.model.addons import AddOn


@dataclass(frozen=True, slots=True, kw_only=True)
class StaffRef:
    """Reference to a staff member, unique by ``staff_id``."""

    staff_id: str
    name: str | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class BookingEvent:
    """One inbound notification about a booking. Never persisted directly."""

    booking_code: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    status: str = BookingStatus.PEND
    total_amount: Decimal | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    booked_at: datetime | None = None
    booking_items: str | None = None
    addons: tuple[AddOn, ...] = ()
    onboarding_staff: tuple[StaffRef, ...] = ()
    deloading_staff: tuple[StaffRef, ...] = ()
    # informational only, the stored duration is always recomputed
    duration_text: str | None = None
    source: EventSource = EventSource.WEBHOOK


@dataclass(frozen=True, slots=True, kw_only=True)
class BookingFields:
    """Complete writable field set of a booking record.

    Store updates always carry a full ``BookingFields`` value, never a patch.
    """

    booking_code: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    status: str = BookingStatus.PEND
    total_amount: Decimal = Decimal(0)
    booking_items: str | None = None
    addons: tuple[AddOn, ...] = ()
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    booked_at: datetime | None = None
    booking_date: str | None = None
    end_date: str | None = None
    created_date: str | None = None
    start_time: str | None = None
    finish_time: str | None = None
    duration: str | None = None
    onboarding_staff: frozenset[StaffRef] = frozenset()
    deloading_staff: frozenset[StaffRef] = frozenset()


@dataclass(frozen=True, slots=True, kw_only=True)
class BookingRecord:
    record_id: str
    fields: BookingFields
    created_at: datetime | None = None

    @property
    def booking_code(self) -> str | None:
        return self.fields.booking_code

    @property
    def status(self) -> str:
        return self.fields.status

    @property
    def total_amount(self) -> Decimal:
        return self.fields.total_amount
