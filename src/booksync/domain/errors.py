"""Error taxonomy for booking reconciliation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from booksync.domain.reconciliation.cleanup import CleanupReport


class ValidationError(ValueError):
    """Raised for malformed events. Never retried, never reaches the store."""


class StoreError(RuntimeError):
    """Base class for record store failures."""


class StoreUnavailableError(StoreError):
    """Timeout, server error or rate limit. Safe to retry."""


class PartialDeleteError(StoreUnavailableError):
    """A batch delete failed after removing some of the requested ids."""

    def __init__(self, message: str, *, deleted: Iterable[str]) -> None:
        super().__init__(message)
        self.deleted = frozenset(deleted)


class RecordNotFoundError(StoreError):
    """Raised by ``RecordStore.get`` and ``update`` for unknown ids."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Booking record not found: {record_id}")
        self.record_id = record_id


class PartialCleanupFailure(StoreError):
    """Some duplicate records could not be deleted.

    The canonical record is already correct when this is raised, so callers log it
    and carry on; a later reconciliation of a ``PAID`` event retries the cleanup.
    """

    def __init__(self, report: CleanupReport) -> None:
        failed = ", ".join(sorted(report.failed))
        super().__init__(
            f"Failed to delete {len(report.failed)} duplicate(s) of {report.canonical_id}: {failed}"
        )
        self.report = report
