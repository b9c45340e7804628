"""Booking reconciliation core.

Layered flow for one event:
1) resolve identity (``identity``)
2) select the canonical record among candidates (``select`` over ``lattice``)
3) merge fields (``merge``)
4) create or update through the record store port (``engine``)
5) delete superseded duplicates once paid (``cleanup``)

``sweep`` applies steps 2 and 5 to the whole store.
"""

from __future__ import annotations

from .cleanup import CleanupReport, cleanup_duplicates
from .engine import BookingReconciler, ReconcilerSettings, ReconciliationResult, validate_event
from .identity import IdentityQuery, resolve_identity
from .lattice import (
    compare_precedence,
    is_cleanup_eligible,
    is_known_status,
    is_terminal_cancellation,
    precedence,
    resolve_status,
)
from .merge import merge_fields, union_staff
from .retry import RetryPolicy, call_with_retry
from .select import Selection, plan_selection, select_canonical
from .sweep import SweepReport, sweep_duplicates

__all__ = [
    "BookingReconciler",
    "CleanupReport",
    "IdentityQuery",
    "ReconcilerSettings",
    "ReconciliationResult",
    "RetryPolicy",
    "Selection",
    "SweepReport",
    "call_with_retry",
    "cleanup_duplicates",
    "compare_precedence",
    "is_cleanup_eligible",
    "is_known_status",
    "is_terminal_cancellation",
    "merge_fields",
    "plan_selection",
    "precedence",
    "resolve_identity",
    "resolve_status",
    "select_canonical",
    "sweep_duplicates",
    "union_staff",
    "validate_event",
]
