"""Translate Checkfront webhook payloads into booking events."""

from __future__ import annotations

import re
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from logging import getLogger
from typing import Final

from booksync.domain.model import AddOn, BookingEvent, BookingStatus, EventSource
from booksync.domain.timing import from_epoch_seconds

from .schema import ItemPayload, WebhookPayload

log = getLogger(__name__)

BOAT_CATEGORIES: Final[Mapping[str, str]] = {
    "2": "Pontoon BBQ Boat",
    "3": "4.1m Polycraft 4 Person",
}
ADDON_CATEGORIES: Final[frozenset[str]] = frozenset({"4", "5", "6", "7"})
BOAT_SKU_HINTS: Final[tuple[str, ...]] = ("boat", "polycraft", "bbq")

ADDON_DISPLAY_NAMES: Final[Mapping[str, str]] = {
    "lillypad": "Lilly Pad",
    "fishingrods": "Fishing Rods",
    "fishingrod": "Fishing Rod",
    "kayak": "Kayak",
    "sup": "Stand Up Paddleboard",
    "paddleboard": "Paddleboard",
    "esky": "Esky/Cooler",
    "baitpack": "Bait Pack",
    "icepack": "Ice Pack",
    "bbqpack": "BBQ Pack",
    "foodpack": "Food Package",
}

_SKU_SEPARATORS = re.compile(r"[-_\s]")
_CENT = Decimal("0.01")


def addon_display_name(sku: str) -> str:
    """Human name for an add-on SKU, e.g. ``fishing-rods`` -> ``Fishing Rods``."""

    known = ADDON_DISPLAY_NAMES.get(_SKU_SEPARATORS.sub("", sku.lower()))
    if known is not None:
        return known
    words = re.sub(r"[-_]", " ", sku).split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def is_boat_item(item: ItemPayload) -> bool:
    if item.category_id in BOAT_CATEGORIES:
        return True
    if item.category_id in ADDON_CATEGORIES:
        return False
    sku = item.sku.lower()
    return any(hint in sku for hint in BOAT_SKU_HINTS)


def _addon_from_item(item: ItemPayload) -> AddOn:
    unit_price = (item.total / item.qty).quantize(_CENT, rounding=ROUND_HALF_UP)
    return AddOn(name=addon_display_name(item.sku), quantity=item.qty, unit_price=unit_price)


def parse_booking_event(
    payload: WebhookPayload | Mapping[str, object],
    *,
    source: EventSource = EventSource.WEBHOOK,
) -> BookingEvent:
    """Build a ``BookingEvent`` from a webhook body.

    The first boat line item becomes ``booking_items``; every other SKU is an
    add-on priced per unit.
    """

    webhook = payload if isinstance(payload, WebhookPayload) else WebhookPayload.model_validate(payload)
    booking = webhook.booking

    boat: str | None = None
    addons: list[AddOn] = []
    for item in booking.order.items.item:
        if not item.sku:
            continue
        if is_boat_item(item):
            if boat is None:
                boat = item.sku
            else:
                log.warning("Booking %s lists more than one boat, ignoring %s", booking.code, item.sku)
            continue
        addons.append(_addon_from_item(item))

    return BookingEvent(
        booking_code=booking.code,
        customer_email=booking.customer.email,
        customer_name=booking.customer.name,
        status=(booking.status or BookingStatus.PEND).upper(),
        total_amount=booking.order.total,
        starts_at=from_epoch_seconds(booking.start_date) if booking.start_date else None,
        ends_at=from_epoch_seconds(booking.end_date) if booking.end_date else None,
        booked_at=from_epoch_seconds(booking.created_date) if booking.created_date else None,
        booking_items=boat,
        addons=tuple(addons),
        source=source,
    )


__all__ = [
    "ADDON_DISPLAY_NAMES",
    "BOAT_CATEGORIES",
    "addon_display_name",
    "is_boat_item",
    "parse_booking_event",
]
