"""Choose the canonical record among candidates sharing an identity.

Selection is a pure function of the candidate set: the same records in any order,
with repeats, yield the same canonical record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from booksync.domain.model import BookingStatus, Precedence

from .lattice import compare_precedence, precedence

if TYPE_CHECKING:
    from collections.abc import Iterable
    from decimal import Decimal

    from booksync.domain.model import BookingRecord

_EPOCH: Final = datetime.min.replace(tzinfo=UTC)


def dedupe_candidates(candidates: Iterable[BookingRecord]) -> tuple[BookingRecord, ...]:
    """Drop repeated records (by id), keeping the first occurrence."""

    seen: set[str] = set()
    deduped: list[BookingRecord] = []
    for candidate in candidates:
        if candidate.record_id in seen:
            continue
        seen.add(candidate.record_id)
        deduped.append(candidate)
    return tuple(deduped)


def _selection_key(record: BookingRecord) -> tuple[int, Decimal, datetime, str]:
    return (
        precedence(record.status),
        record.total_amount,
        record.created_at or _EPOCH,
        record.record_id,
    )


def select_canonical(candidates: Iterable[BookingRecord]) -> BookingRecord | None:
    """Highest status, then highest amount, then most recently created.

    A ``PAID`` record therefore beats any non-``PAID`` one regardless of recency,
    and among ``PAID`` records the largest amount wins. The record id breaks exact
    ties so the result never depends on arrival order.
    """

    unique = dedupe_candidates(candidates)
    if not unique:
        return None
    return max(unique, key=_selection_key)


@dataclass(frozen=True, slots=True)
class Selection:
    canonical: BookingRecord | None
    siblings: tuple[BookingRecord, ...] = ()
    rejected: bool = False
    reason: str | None = None

    @property
    def sibling_ids(self) -> tuple[str, ...]:
        return tuple(sibling.record_id for sibling in self.siblings)


def plan_selection(incoming_status: str, candidates: Iterable[BookingRecord]) -> Selection:
    """Select the canonical record and decide whether the event may be applied.

    An event whose status ranks below a ``PAID`` canonical record is rejected so a
    late low-status webhook cannot downgrade a paid booking.
    """

    unique = dedupe_candidates(candidates)
    canonical = select_canonical(unique)
    if canonical is None:
        return Selection(canonical=None, reason="no_candidates")

    siblings = tuple(
        sorted(
            (record for record in unique if record.record_id != canonical.record_id),
            key=lambda record: record.record_id,
        )
    )
    if canonical.status == BookingStatus.PAID and precedence(incoming_status) < precedence(
        BookingStatus.PAID
    ):
        return Selection(
            canonical=canonical,
            siblings=siblings,
            rejected=True,
            reason=f"would_downgrade_paid_to_{incoming_status}",
        )

    comparison = compare_precedence(incoming_status, canonical.status)
    return Selection(
        canonical=canonical,
        siblings=siblings,
        reason=f"incoming_{comparison.value}" if comparison is not Precedence.EQUAL else "same_rank",
    )


__all__ = ["Selection", "dedupe_candidates", "plan_selection", "select_canonical"]
