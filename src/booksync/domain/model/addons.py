"""Add-on line items and their text representation.

Add-ons are stored as a single text field of the form
``"2 x Fishing Rod - $20.00, Lilly Pad - $55.00"``. The quantity prefix is omitted
when the quantity is one and the price is the unit price.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from booksync.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

_WHITESPACE = re.compile(r"\s+")
_ADDON_ENTRY = re.compile(r"^(?:(\d+)\s*x\s+)?(.+?)\s*-\s*\$(\d+(?:\.\d{1,2})?)$")
_CENTS = Decimal("0.01")


def normalize_addon_name(name: str) -> str:
    """Merge key for an add-on: case-insensitive, whitespace-normalized."""

    return _WHITESPACE.sub(" ", name).strip().casefold()


@dataclass(frozen=True, slots=True, kw_only=True)
class AddOn:
    name: str
    quantity: int = 1
    unit_price: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValidationError("Add-on name must not be blank")
        if self.quantity < 1:
            raise ValidationError(f"Add-on quantity must be positive: {self.name!r}")
        if self.unit_price < 0:
            raise ValidationError(f"Add-on price must not be negative: {self.name!r}")

    @property
    def key(self) -> str:
        return normalize_addon_name(self.name)

    def format(self) -> str:
        price = self.unit_price.quantize(_CENTS)
        label = _WHITESPACE.sub(" ", self.name).strip()
        if self.quantity == 1:
            return f"{label} - ${price}"
        return f"{self.quantity} x {label} - ${price}"


def format_addons(addons: Iterable[AddOn]) -> str:
    return ", ".join(addon.format() for addon in addons)


def parse_addons(text: str | None) -> tuple[AddOn, ...]:
    """Parse the stored text form back into add-ons.

    Raises ``ValidationError`` for an entry that does not follow the format.
    """

    if text is None or not text.strip():
        return ()
    addons: list[AddOn] = []
    for raw_entry in text.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue
        match = _ADDON_ENTRY.match(entry)
        if match is None:
            raise ValidationError(f"Unparseable add-on entry: {entry!r}")
        quantity, name, price = match.groups()
        try:
            unit_price = Decimal(price)
        except InvalidOperation as exc:  # pragma: no cover - guarded by the pattern
            raise ValidationError(f"Invalid add-on price: {entry!r}") from exc
        addons.append(
            AddOn(
                name=name.strip(),
                quantity=int(quantity) if quantity else 1,
                unit_price=unit_price,
            )
        )
    return tuple(addons)


def merge_addons(stored: Iterable[AddOn], incoming: Iterable[AddOn]) -> tuple[AddOn, ...]:
    """Merge ``incoming`` into ``stored`` by normalized name.

    Last writer wins per name for quantity and price, the stored display name is
    kept, stored entries missing from ``incoming`` are retained and new names are
    appended in arrival order.
    """

    merged: dict[str, AddOn] = {}
    for addon in stored:
        merged[addon.key] = addon
    for addon in incoming:
        current = merged.get(addon.key)
        if current is None:
            merged[addon.key] = addon
            continue
        merged[addon.key] = replace(current, quantity=addon.quantity, unit_price=addon.unit_price)
    return tuple(merged.values())
