"""Port for the booking record store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from booksync.domain.model import BookingFields, BookingRecord

type FilterField = Literal["booking_code", "customer_email", "booking_date", "start_time"]

FILTERABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {"booking_code", "customer_email", "booking_date", "start_time"}
)


@dataclass(frozen=True, slots=True)
class FieldEquals:
    """Exact-match predicate on a stored field.

    ``value`` is an opaque token: adapters bind it as a parameter or escape it as a
    string literal, never splice it into query syntax.
    """

    field: FilterField
    value: str

    def __post_init__(self) -> None:
        if self.field not in FILTERABLE_FIELDS:
            raise ValueError(f"Field is not filterable: {self.field}")


# Conjunction of predicates; the empty filter matches every record.
type RecordFilter = tuple[FieldEquals, ...]


@runtime_checkable
class RecordStore(Protocol):
    """Minimal CRUD contract the reconciliation engine relies on.

    Implementations raise ``StoreUnavailableError`` for transient failures and
    ``RecordNotFoundError`` from ``get``/``update`` for unknown ids. ``delete``
    ignores ids that no longer exist and accepts at most ``max_batch_size`` ids.
    """

    max_batch_size: int

    def find(self, record_filter: RecordFilter) -> list[BookingRecord]: ...

    def get(self, record_id: str) -> BookingRecord: ...

    def create(self, fields: BookingFields) -> BookingRecord: ...

    def update(self, record_id: str, fields: BookingFields) -> BookingRecord: ...

    def delete(self, record_ids: Sequence[str]) -> None: ...
