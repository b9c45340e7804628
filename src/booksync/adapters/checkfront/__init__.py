"""Public interface for the Checkfront webhook adapter."""

from __future__ import annotations

from .schema import BookingPayload, ItemPayload, WebhookPayload
from .translator import addon_display_name, is_boat_item, parse_booking_event

__all__ = [
    "BookingPayload",
    "ItemPayload",
    "WebhookPayload",
    "addon_display_name",
    "is_boat_item",
    "parse_booking_event",
]
