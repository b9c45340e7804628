"""Precedence order over booking statuses.

Precedence decides which duplicate survives and whether an incoming event may
replace a stored status. It never advances a record on its own.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

from booksync.domain.model import BookingStatus, Precedence

UNKNOWN_PRECEDENCE: Final[int] = 0

STATUS_PRECEDENCE: Final[MappingProxyType[str, int]] = MappingProxyType(
    {
        BookingStatus.VOID: -2,
        BookingStatus.STOP: -1,
        BookingStatus.PEND: 1,
        BookingStatus.HOLD: 2,
        BookingStatus.WAIT: 2,
        BookingStatus.PART: 3,
        BookingStatus.PAID: 4,
    }
)

_TERMINAL_CANCELLATIONS: Final = frozenset({BookingStatus.VOID, BookingStatus.STOP})
_CLEANUP_ELIGIBLE: Final = frozenset({BookingStatus.PAID})
_NON_OVERWRITING: Final = frozenset({BookingStatus.HOLD, BookingStatus.WAIT})


def is_known_status(status: str) -> bool:
    return status in STATUS_PRECEDENCE


def precedence(status: str) -> int:
    """Rank of ``status``; unrecognized tokens rank 0, between cancellations and ``PEND``."""

    return STATUS_PRECEDENCE.get(status, UNKNOWN_PRECEDENCE)


def compare_precedence(a: str, b: str) -> Precedence:
    """Compare ``a`` against ``b``.

    ``HOLD`` and ``WAIT`` are ``EQUAL`` while remaining distinct statuses. A pair
    involving an unrecognized token is ``INCOMPARABLE``.
    """

    if not (is_known_status(a) and is_known_status(b)):
        return Precedence.INCOMPARABLE
    rank_a, rank_b = precedence(a), precedence(b)
    if rank_a > rank_b:
        return Precedence.HIGHER
    if rank_a < rank_b:
        return Precedence.LOWER
    return Precedence.EQUAL


def is_terminal_cancellation(status: str) -> bool:
    return status in _TERMINAL_CANCELLATIONS


def is_cleanup_eligible(status: str) -> bool:
    """Only a fully paid booking may collapse its duplicates."""

    return status in _CLEANUP_ELIGIBLE


def resolve_status(existing: str, incoming: str) -> str:
    """Status to store when ``incoming`` is applied to a record in ``existing``.

    The incoming status wins except between ``HOLD`` and ``WAIT``, which never
    replace one another. Rejection of downgrades from ``PAID`` happens in the
    record selector before this is reached.
    """

    if existing != incoming and existing in _NON_OVERWRITING and incoming in _NON_OVERWRITING:
        return existing
    return incoming


__all__ = [
    "STATUS_PRECEDENCE",
    "UNKNOWN_PRECEDENCE",
    "compare_precedence",
    "is_cleanup_eligible",
    "is_known_status",
    "is_terminal_cancellation",
    "precedence",
    "resolve_status",
]
