"""Map an incoming event to the query that finds its candidate records.

Strategies, first applicable wins:
1) booking code, exact match
2) customer email + local booking date + local start time, exact three-way match
3) nothing usable: no query, the event is create-only
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from booksync.domain.errors import ValidationError
from booksync.domain.model import IdentityStrategy
from booksync.domain.ports import FieldEquals
from booksync.domain.timing import format_local_date, format_local_time

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from booksync.domain.model import BookingEvent
    from booksync.domain.ports import RecordFilter


@dataclass(frozen=True, slots=True)
class IdentityQuery:
    strategy: IdentityStrategy
    record_filter: RecordFilter

    @property
    def key(self) -> tuple[str, ...]:
        return tuple(predicate.value for predicate in self.record_filter)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def resolve_identity(event: BookingEvent, *, tz: ZoneInfo) -> IdentityQuery | None:
    """Return the identity query for ``event`` or ``None`` when no key is usable."""

    booking_code = _clean(event.booking_code)
    if booking_code is not None:
        return IdentityQuery(
            strategy=IdentityStrategy.BOOKING_CODE,
            record_filter=(FieldEquals("booking_code", booking_code),),
        )

    customer_email = _clean(event.customer_email)
    if customer_email is not None:
        if event.starts_at is None:
            raise ValidationError(
                "Event without booking code needs a start time to match by customer email"
            )
        return IdentityQuery(
            strategy=IdentityStrategy.EMAIL_AND_START,
            record_filter=(
                FieldEquals("customer_email", customer_email),
                FieldEquals("booking_date", format_local_date(event.starts_at, tz)),
                FieldEquals("start_time", format_local_time(event.starts_at, tz)),
            ),
        )

    return None


__all__ = ["IdentityQuery", "resolve_identity"]
