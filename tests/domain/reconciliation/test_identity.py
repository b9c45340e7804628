from __future__ import annotations

import pytest

from booksync.domain.errors import ValidationError
from booksync.domain.model import IdentityStrategy
from booksync.domain.ports import FieldEquals
from booksync.domain.reconciliation import resolve_identity
from tests.helpers.bookings import SYDNEY, make_event


def test_booking_code_wins() -> None:
    query = resolve_identity(make_event(booking_code="  MBH-1001 "), tz=SYDNEY)

    assert query is not None
    assert query.strategy is IdentityStrategy.BOOKING_CODE
    assert query.record_filter == (FieldEquals("booking_code", "MBH-1001"),)


def test_email_and_start_fallback() -> None:
    query = resolve_identity(make_event(booking_code=None), tz=SYDNEY)

    assert query is not None
    assert query.strategy is IdentityStrategy.EMAIL_AND_START
    assert query.key == ("sam@example.com", "2025-03-15", "10:00 am")


def test_blank_booking_code_falls_back_to_email() -> None:
    query = resolve_identity(make_event(booking_code="   "), tz=SYDNEY)

    assert query is not None
    assert query.strategy is IdentityStrategy.EMAIL_AND_START


def test_email_without_start_is_invalid() -> None:
    with pytest.raises(ValidationError):
        resolve_identity(make_event(booking_code=None, starts_at=None, ends_at=None), tz=SYDNEY)


def test_no_usable_key() -> None:
    assert resolve_identity(make_event(booking_code=None, customer_email=""), tz=SYDNEY) is None


def test_filter_rejects_unknown_field() -> None:
    with pytest.raises(ValueError, match="not filterable"):
        FieldEquals("status", "PAID")  # type: ignore[arg-type]
