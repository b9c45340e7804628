"""Booking notifications sent after a reconciliation.

The engine only decides *whether* and *what* to send. Delivery goes through the
``Notifier`` port and repeat suppression through an injected
``ExpiringKeyValueStore``, so no send history is kept in module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from booksync.domain.model import BookingStatus, ReconcileAction, format_addons

if TYPE_CHECKING:
    from collections.abc import Callable

    from booksync.domain.model import BookingFields
    from booksync.domain.ports import ExpiringKeyValueStore, Notifier

log = getLogger(__name__)

DEFAULT_NOTIFICATION_TTL = timedelta(hours=24)
BUSINESS_NAME = "Boat Hire Manly"

_PAYMENT_PENDING = frozenset(
    {BookingStatus.PEND, BookingStatus.HOLD, BookingStatus.WAIT, BookingStatus.PART}
)
_AWAITING_DEPOSIT = frozenset({BookingStatus.PEND, BookingStatus.HOLD, BookingStatus.WAIT})


class MessageKind(StrEnum):
    NEW_BOOKING = "new_booking"
    CANCELLED = "cancelled"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PARTIAL_PAYMENT = "partial_payment"
    UPDATED = "updated"


def is_significant_status_change(old: str, new: str) -> bool:
    """Whether moving from ``old`` to ``new`` is worth telling anyone about."""

    if new in (BookingStatus.VOID, BookingStatus.STOP):
        return old not in (BookingStatus.VOID, BookingStatus.STOP)
    if new == BookingStatus.PAID and old in _PAYMENT_PENDING:
        return True
    return new == BookingStatus.PART and old in _AWAITING_DEPOSIT


def message_kind_for(status: str, *, is_new: bool) -> MessageKind:
    if is_new:
        return MessageKind.NEW_BOOKING
    if status in (BookingStatus.VOID, BookingStatus.STOP):
        return MessageKind.CANCELLED
    if status == BookingStatus.PAID:
        return MessageKind.PAYMENT_CONFIRMED
    if status == BookingStatus.PART:
        return MessageKind.PARTIAL_PAYMENT
    return MessageKind.UPDATED


def _display_date(fields: BookingFields) -> str:
    if fields.booking_date is None:
        return "TBC"
    parsed = datetime.strptime(fields.booking_date, "%Y-%m-%d").replace(tzinfo=UTC)
    return f"{parsed:%A} {parsed.day} {parsed:%b %Y}"


def compose_message(kind: MessageKind, fields: BookingFields) -> str:
    code = fields.booking_code or "N/A"
    customer = fields.customer_name or "Customer"
    date = _display_date(fields)
    addons = format_addons(fields.addons)

    if kind is MessageKind.NEW_BOOKING:
        lines = [
            f"{BUSINESS_NAME} - Booking Confirmed",
            "",
            f"Booking: {code}",
            f"Customer: {customer}",
            "",
            f"Date: {date}",
            f"Time: {fields.start_time or 'TBC'} - {fields.finish_time or 'TBC'}",
            f"Duration: {fields.duration or 'TBC'}",
            "",
            f"Boat: {fields.booking_items or 'TBC'}",
        ]
        if addons:
            lines.append(f"Add-ons: {addons}")
        lines.extend([f"Status: {fields.status}", "", "See you at the marina!"])
        return "\n".join(lines)

    if kind is MessageKind.CANCELLED:
        return "\n".join(
            [
                f"{BUSINESS_NAME} - Booking Cancelled",
                "",
                f"Booking: {code}",
                f"Customer: {customer}",
                f"Date: {date}",
                "",
                "Your booking has been cancelled.",
                "If you have questions, please call us.",
            ]
        )

    if kind is MessageKind.PAYMENT_CONFIRMED:
        lines = [
            f"{BUSINESS_NAME} - Payment Confirmed",
            "",
            f"Booking: {code}",
            f"Customer: {customer}",
            "",
            "Your payment has been received!",
        ]
        if fields.booking_items:
            lines.append(f"Boat: {fields.booking_items}")
        if addons:
            lines.append(f"Add-ons: {addons}")
        lines.extend(["", f"See you on {date} at {fields.start_time or 'TBC'}."])
        return "\n".join(lines)

    if kind is MessageKind.PARTIAL_PAYMENT:
        return "\n".join(
            [
                f"{BUSINESS_NAME} - Partial Payment Received",
                "",
                f"Booking: {code}",
                f"Customer: {customer}",
                "",
                "We've received your partial payment.",
                f"Please complete payment before {date}.",
            ]
        )

    return "\n".join(
        [
            f"{BUSINESS_NAME} - Booking Updated",
            "",
            f"Booking: {code}",
            f"Status: {fields.status}",
            "",
            f"Your booking for {date} has been updated.",
        ]
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class BookingNotifications:
    """Send at most one message per booking code and status within ``ttl``."""

    notifier: Notifier
    tracker: ExpiringKeyValueStore
    recipient: str
    ttl: timedelta = DEFAULT_NOTIFICATION_TTL
    clock: Callable[[], datetime] = _utcnow

    def notify(
        self,
        action: ReconcileAction,
        fields: BookingFields,
        *,
        previous_status: str | None,
    ) -> bool:
        """Return whether a message was delivered."""

        is_new = action is ReconcileAction.CREATED
        if action is not ReconcileAction.CREATED and action is not ReconcileAction.UPDATED:
            return False
        if not is_new and not is_significant_status_change(previous_status or "", fields.status):
            log.debug(
                "Not notifying for %s: %s -> %s",
                fields.booking_code,
                previous_status,
                fields.status,
            )
            return False

        key = f"booking:{fields.booking_code or fields.customer_email}:{fields.status}"
        if self.tracker.get(key) is not None:
            log.info("Notification for %s already sent, skipping", key)
            return False

        message = compose_message(message_kind_for(fields.status, is_new=is_new), fields)
        sent = self.notifier.send(self.recipient, message)
        if sent:
            self.tracker.set(key, self.clock().isoformat(), ttl=self.ttl)
        else:
            log.warning("Notification for %s was not delivered", key)
        return sent


__all__ = [
    "BookingNotifications",
    "MessageKind",
    "compose_message",
    "is_significant_status_change",
    "message_kind_for",
]
