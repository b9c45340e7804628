"""Formatting of booking time windows in the operator's local timezone."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Final
from zoneinfo import ZoneInfo

from booksync.domain.errors import ValidationError

DEFAULT_TIMEZONE: Final[str] = "Australia/Sydney"


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValidationError("Booking timestamps must include timezone information")
    return value


def format_local_date(value: datetime, tz: ZoneInfo) -> str:
    """``YYYY-MM-DD`` in ``tz``."""

    return _ensure_aware(value).astimezone(tz).strftime("%Y-%m-%d")


def format_local_time(value: datetime, tz: ZoneInfo) -> str:
    """Twelve-hour clock with a lower-case suffix, e.g. ``09:30 am``."""

    local = _ensure_aware(value).astimezone(tz)
    return local.strftime("%I:%M %p").lower()


def format_duration(start: datetime, end: datetime) -> str:
    """Whole hours plus remaining minutes between ``start`` and ``end``.

    Raises ``ValidationError`` when the window is empty or inverted.
    """

    delta = _ensure_aware(end) - _ensure_aware(start)
    if delta <= timedelta(0):
        raise ValidationError(f"Booking must end after it starts (start={start}, end={end})")
    total_minutes = int(delta.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours} hours {minutes} minutes"


def from_epoch_seconds(value: int | float) -> datetime:
    return datetime.fromtimestamp(value, tz=UTC)


@dataclass(frozen=True, slots=True)
class LocalBookingTimes:
    """Display values derived from a booking's timestamps."""

    booking_date: str | None
    end_date: str | None
    created_date: str | None
    start_time: str | None
    finish_time: str | None
    duration: str | None

    @classmethod
    def derive(
        cls,
        *,
        starts_at: datetime | None,
        ends_at: datetime | None,
        booked_at: datetime | None,
        tz: ZoneInfo,
    ) -> LocalBookingTimes:
        duration = None
        if starts_at is not None and ends_at is not None:
            duration = format_duration(starts_at, ends_at)
        return cls(
            booking_date=format_local_date(starts_at, tz) if starts_at else None,
            end_date=format_local_date(ends_at, tz) if ends_at else None,
            created_date=format_local_date(booked_at, tz) if booked_at else None,
            start_time=format_local_time(starts_at, tz) if starts_at else None,
            finish_time=format_local_time(ends_at, tz) if ends_at else None,
            duration=duration,
        )


__all__ = [
    "DEFAULT_TIMEZONE",
    "LocalBookingTimes",
    "format_duration",
    "format_local_date",
    "format_local_time",
    "from_epoch_seconds",
]
