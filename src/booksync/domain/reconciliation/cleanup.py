"""Delete superseded duplicates once a canonical record is established."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from booksync.domain.errors import (
    PartialCleanupFailure,
    PartialDeleteError,
    StoreError,
    StoreUnavailableError,
)

from .retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from booksync.domain.ports import RecordStore

    from .retry import Sleep

log = getLogger(__name__)

DEFAULT_CLEANUP_BATCH_SIZE = 10


@dataclass(slots=True)
class CleanupReport:
    canonical_id: str
    deleted: list[str] = field(default_factory=list[str])
    failed: list[str] = field(default_factory=list[str])

    @property
    def complete(self) -> bool:
        return not self.failed


def _batches(ids: list[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


def cleanup_duplicates(
    store: RecordStore,
    canonical_id: str,
    sibling_ids: Iterable[str],
    *,
    batch_size: int = DEFAULT_CLEANUP_BATCH_SIZE,
    retry: RetryPolicy | None = None,
    sleep: Sleep = time.sleep,
) -> CleanupReport:
    """Delete ``sibling_ids`` in bounded batches.

    The canonical id is never deleted even if it is passed as a sibling. When a
    batch fails part-way only its remaining ids are retried. Ids still present
    after the retry budget, or in a batch the store rejected outright, are
    collected and reported through ``PartialCleanupFailure`` once every batch
    has been attempted.
    """

    policy = retry or RetryPolicy()
    size = max(1, min(batch_size, store.max_batch_size))
    pending = list(dict.fromkeys(sid for sid in sibling_ids if sid != canonical_id))
    report = CleanupReport(canonical_id=canonical_id)

    for batch in _batches(pending, size):
        remaining = batch
        for attempt in range(1, policy.attempts + 1):
            try:
                store.delete(remaining)
            except PartialDeleteError as exc:
                report.deleted.extend(rid for rid in remaining if rid in exc.deleted)
                remaining = [rid for rid in remaining if rid not in exc.deleted]
                log.warning(
                    "Partial delete for %s: %s removed, %s remaining (%s)",
                    canonical_id,
                    len(exc.deleted),
                    len(remaining),
                    exc,
                )
            except StoreUnavailableError as exc:
                log.warning("Delete batch for %s failed: %s", canonical_id, exc)
            except StoreError as exc:
                log.error("Delete batch for %s rejected, not retrying: %s", canonical_id, exc)
                break
            else:
                report.deleted.extend(remaining)
                remaining = []
                break
            if not remaining:
                break
            if attempt < policy.attempts:
                sleep(policy.delay_for(attempt))
        report.failed.extend(remaining)

    if report.deleted:
        log.info("Deleted %s duplicate(s) of %s", len(report.deleted), canonical_id)
    if report.failed:
        raise PartialCleanupFailure(report)
    return report


__all__ = ["DEFAULT_CLEANUP_BATCH_SIZE", "CleanupReport", "cleanup_duplicates"]
