"""Per-field rules for combining an incoming event with a stored record.

==============  ===============================================================
field group     rule
==============  ===============================================================
contact, code,  overwrite with the incoming value when present, otherwise keep
amount, items,
timestamps
duration        recomputed from the effective start/end, never copied
staff sets      union by staff id, existing members always kept
add-ons         merge by normalized name, last writer wins per name
status          ``resolve_status`` once the selector accepted the event
==============  ===============================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from booksync.domain.model import BookingFields, StaffRef, merge_addons
from booksync.domain.timing import LocalBookingTimes

from .lattice import resolve_status

if TYPE_CHECKING:
    from collections.abc import Iterable
    from zoneinfo import ZoneInfo

    from booksync.domain.model import BookingEvent

_EMPTY = BookingFields()


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def overwrite[T](incoming: T | None, existing: T | None) -> T | None:
    """Incoming value when present, stored value otherwise."""

    return existing if incoming is None else incoming


def union_staff(existing: Iterable[StaffRef], incoming: Iterable[StaffRef]) -> frozenset[StaffRef]:
    """Set union by staff id; the stored reference wins when both carry the id."""

    merged: dict[str, StaffRef] = {}
    for ref in incoming:
        merged.setdefault(ref.staff_id, ref)
    for ref in existing:
        merged[ref.staff_id] = ref
    return frozenset(merged.values())


def merge_fields(
    event: BookingEvent,
    existing: BookingFields | None,
    *,
    status: str | None = None,
    tz: ZoneInfo,
) -> BookingFields:
    """Compute the complete field set to write for ``event``.

    ``existing`` is ``None`` on the create path. ``status`` defaults to the
    status resolved from the stored and incoming values.
    """

    base = existing or _EMPTY
    starts_at = overwrite(event.starts_at, base.starts_at)
    ends_at = overwrite(event.ends_at, base.ends_at)
    booked_at = overwrite(event.booked_at, base.booked_at)
    times = LocalBookingTimes.derive(starts_at=starts_at, ends_at=ends_at, booked_at=booked_at, tz=tz)

    if status is None:
        status = event.status if existing is None else resolve_status(base.status, event.status)

    return BookingFields(
        booking_code=overwrite(_text(event.booking_code), base.booking_code),
        customer_name=overwrite(_text(event.customer_name), base.customer_name),
        customer_email=overwrite(_text(event.customer_email), base.customer_email),
        status=status,
        total_amount=(
            base.total_amount if event.total_amount is None else event.total_amount
        ),
        booking_items=overwrite(_text(event.booking_items), base.booking_items),
        addons=merge_addons(base.addons, event.addons),
        starts_at=starts_at,
        ends_at=ends_at,
        booked_at=booked_at,
        booking_date=times.booking_date or base.booking_date,
        end_date=times.end_date or base.end_date,
        created_date=times.created_date or base.created_date,
        start_time=times.start_time or base.start_time,
        finish_time=times.finish_time or base.finish_time,
        duration=times.duration or base.duration,
        onboarding_staff=union_staff(base.onboarding_staff, event.onboarding_staff),
        deloading_staff=union_staff(base.deloading_staff, event.deloading_staff),
    )


__all__ = ["merge_fields", "overwrite", "union_staff"]
