"""Booking domain model (dataclasses only, no adapter types)."""

from __future__ import annotations

from .addons import AddOn, format_addons, merge_addons, normalize_addon_name, parse_addons
from .booking import BookingEvent, BookingFields, BookingRecord, StaffRef
from .enums import BookingStatus, EventSource, IdentityStrategy, Precedence, ReconcileAction

__all__ = [
    "AddOn",
    "BookingEvent",
    "BookingFields",
    "BookingRecord",
    "BookingStatus",
    "EventSource",
    "IdentityStrategy",
    "Precedence",
    "ReconcileAction",
    "StaffRef",
    "format_addons",
    "merge_addons",
    "normalize_addon_name",
    "parse_addons",
]
