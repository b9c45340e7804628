"""Build ``filterByFormula`` expressions from record filters.

Filter values are always emitted as quoted string literals, so a value can never
change the structure of the formula it is placed in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from booksync.domain.ports import FieldEquals, RecordFilter

FILTER_COLUMNS: Final[dict[str, str]] = {
    "booking_code": "Booking Code",
    "customer_email": "Customer Email",
    "booking_date": "Booking Date",
    "start_time": "Start Time",
}


def quote_string(value: str) -> str:
    """Airtable string literal for ``value``."""

    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def _predicate(predicate: FieldEquals) -> str:
    return f"{{{FILTER_COLUMNS[predicate.field]}}}={quote_string(predicate.value)}"


def build_formula(record_filter: RecordFilter) -> str | None:
    """``AND(...)`` over every predicate, or ``None`` for the match-all filter."""

    if not record_filter:
        return None
    return f"AND({', '.join(_predicate(predicate) for predicate in record_filter)})"


__all__ = ["FILTER_COLUMNS", "build_formula", "quote_string"]
