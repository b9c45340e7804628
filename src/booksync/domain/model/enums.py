"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class BookingStatus(StrEnum):
    """Booking lifecycle tokens as emitted by the reservation system."""

    VOID = "VOID"
    STOP = "STOP"
    PEND = "PEND"
    HOLD = "HOLD"
    WAIT = "WAIT"
    PART = "PART"
    PAID = "PAID"


class EventSource(StrEnum):
    WEBHOOK = "webhook"
    SCRIPT = "script"
    SMS = "sms"


class Precedence(StrEnum):
    """Outcome of comparing two statuses on the lattice."""

    HIGHER = "higher"
    LOWER = "lower"
    EQUAL = "equal"
    INCOMPARABLE = "incomparable"


class ReconcileAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class IdentityStrategy(StrEnum):
    BOOKING_CODE = "booking_code"
    EMAIL_AND_START = "email_and_start"
