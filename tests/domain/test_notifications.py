from __future__ import annotations

from datetime import timedelta

import pytest

from booksync.adapters.memory import InMemoryTTLTracker, RecordingNotifier
from booksync.domain.model import AddOn, ReconcileAction
from booksync.domain.notifications import (
    BookingNotifications,
    MessageKind,
    compose_message,
    is_significant_status_change,
)
from tests.helpers.bookings import ManualClock, make_fields


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        ("PEND", "PAID", True),
        ("PART", "PAID", True),
        ("HOLD", "PART", True),
        ("PART", "PART", False),
        ("PAID", "PART", False),
        ("PEND", "HOLD", False),
        ("PAID", "VOID", True),
        ("PEND", "STOP", True),
        ("PAID", "STOP", True),
        ("VOID", "VOID", False),
        ("STOP", "VOID", False),
    ],
)
def test_significant_status_changes(old: str, new: str, expected: bool) -> None:
    assert is_significant_status_change(old, new) is expected


def test_new_booking_message_lists_details() -> None:
    fields = make_fields(addons=(AddOn(name="Kayak"),))

    message = compose_message(MessageKind.NEW_BOOKING, fields)

    assert "Booking: MBH-1001" in message
    assert "Date: Saturday 15 Mar 2025" in message
    assert "Time: 10:00 am - 12:30 pm" in message
    assert "Duration: 2 hours 30 minutes" in message
    assert "Add-ons: Kayak - $0.00" in message


def _notifications(
    notifier: RecordingNotifier, tracker: InMemoryTTLTracker
) -> BookingNotifications:
    return BookingNotifications(
        notifier=notifier, tracker=tracker, recipient="+61400000000", ttl=timedelta(hours=24)
    )


def test_repeat_within_ttl_is_suppressed(
    notifier: RecordingNotifier, tracker: InMemoryTTLTracker, clock: ManualClock
) -> None:
    notifications = _notifications(notifier, tracker)
    fields = make_fields(status="PAID")

    first = notifications.notify(ReconcileAction.UPDATED, fields, previous_status="PART")
    clock.advance(timedelta(hours=23))
    second = notifications.notify(ReconcileAction.UPDATED, fields, previous_status="PART")
    clock.advance(timedelta(hours=2))
    third = notifications.notify(ReconcileAction.UPDATED, fields, previous_status="PART")

    assert (first, second, third) == (True, False, True)
    assert len(notifier.sent) == 2


def test_undelivered_message_is_not_tracked(
    tracker: InMemoryTTLTracker,
) -> None:
    notifier = RecordingNotifier(deliver=False)
    notifications = _notifications(notifier, tracker)

    sent = notifications.notify(ReconcileAction.CREATED, make_fields(), previous_status=None)

    assert not sent
    assert tracker.get("booking:MBH-1001:PEND") is None


@pytest.mark.parametrize("action", [ReconcileAction.SKIPPED, ReconcileAction.REJECTED])
def test_no_message_without_a_write(
    notifier: RecordingNotifier, tracker: InMemoryTTLTracker, action: ReconcileAction
) -> None:
    notifications = _notifications(notifier, tracker)

    assert not notifications.notify(action, make_fields(status="PAID"), previous_status="PEND")
    assert notifier.sent == []
