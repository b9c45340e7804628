"""Orchestrator for booking reconciliation.

One call turns one event into at most one write plus an optional cleanup:

1) validate the event
2) resolve its identity query
3) fetch candidates and select the canonical record
4) merge fields and create, update, skip or reject
5) delete superseded siblings once the booking is paid
6) notify, if a notification collaborator is configured

Every step is safe to repeat. There is no locking across invocations, so a crash
between the write and the cleanup is repaired by reconciling the same event again.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from booksync.domain.errors import PartialCleanupFailure, StoreUnavailableError, ValidationError
from booksync.domain.model import ReconcileAction
from booksync.domain.timing import DEFAULT_TIMEZONE, format_duration

from .cleanup import DEFAULT_CLEANUP_BATCH_SIZE, CleanupReport, cleanup_duplicates
from .identity import resolve_identity
from .lattice import is_cleanup_eligible, is_known_status
from .merge import merge_fields
from .retry import RetryPolicy, call_with_retry
from .select import plan_selection

if TYPE_CHECKING:
    from collections.abc import Callable

    from booksync.domain.model import BookingEvent, BookingFields, BookingRecord
    from booksync.domain.notifications import BookingNotifications
    from booksync.domain.ports import RecordStore

    from .identity import IdentityQuery
    from .retry import Sleep
    from .select import Selection

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcilerSettings:
    timezone: str = DEFAULT_TIMEZONE
    cleanup_batch_size: int = DEFAULT_CLEANUP_BATCH_SIZE
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationResult:
    action: ReconcileAction
    record_id: str
    final_status: str
    previous_status: str | None = None
    dedup_skipped: bool = False
    cleanup: CleanupReport | None = None
    reason: str | None = None


def validate_event(event: BookingEvent) -> None:
    """Reject malformed events before any store call."""

    if event.starts_at is not None and event.ends_at is not None:
        format_duration(event.starts_at, event.ends_at)
    if not event.status or not event.status.strip():
        raise ValidationError("Event status must not be blank")


@dataclass(slots=True)
class BookingReconciler:
    """Idempotent create-or-update of booking records from booking events."""

    store: RecordStore
    settings: ReconcilerSettings = field(default_factory=ReconcilerSettings)
    notifications: BookingNotifications | None = None
    sleep: Sleep = time.sleep

    def reconcile(self, event: BookingEvent) -> ReconciliationResult:
        validate_event(event)
        if not is_known_status(event.status):
            log.warning(
                "Unrecognized status %r for booking %s, treating as lowest precedence",
                event.status,
                event.booking_code,
            )

        tz = self.settings.tzinfo
        query = resolve_identity(event, tz=tz)
        if query is None:
            log.warning(
                "Event without booking code or customer email, creating without deduplication"
            )
            fields = merge_fields(event, None, tz=tz)
            record = self._create(fields)
            return self._finish(
                ReconciliationResult(
                    action=ReconcileAction.CREATED,
                    record_id=record.record_id,
                    final_status=record.status,
                    dedup_skipped=True,
                    reason="no_identity_key",
                ),
                record.fields,
            )

        selection = plan_selection(event.status, self._find(query))
        if selection.canonical is not None:
            return self._apply(event, selection, selection.canonical)
        return self._create_unless_found(event, query, selection)

    def _apply(
        self, event: BookingEvent, selection: Selection, canonical: BookingRecord
    ) -> ReconciliationResult:
        if selection.rejected:
            log.warning(
                "Rejected %s event for booking %s: record %s is %s",
                event.status,
                canonical.booking_code,
                canonical.record_id,
                canonical.status,
            )
            return ReconciliationResult(
                action=ReconcileAction.REJECTED,
                record_id=canonical.record_id,
                final_status=canonical.status,
                previous_status=canonical.status,
                reason=selection.reason,
            )

        fields = merge_fields(event, canonical.fields, tz=self.settings.tzinfo)
        if fields == canonical.fields:
            action = ReconcileAction.SKIPPED
            written: BookingRecord = canonical
            log.info("Booking %s already up to date (%s)", fields.booking_code, canonical.record_id)
        else:
            action = ReconcileAction.UPDATED
            written = self._call(
                lambda: self.store.update(canonical.record_id, fields),
                f"update {canonical.record_id}",
            )
            log.info(
                "Updated booking %s (%s): %s -> %s",
                fields.booking_code,
                canonical.record_id,
                canonical.status,
                written.status,
            )

        report = None
        if selection.siblings and is_cleanup_eligible(written.status):
            report = self._cleanup(written.record_id, selection.sibling_ids)

        return self._finish(
            ReconciliationResult(
                action=action,
                record_id=written.record_id,
                final_status=written.status,
                previous_status=canonical.status,
                cleanup=report,
                reason=selection.reason,
            ),
            written.fields,
        )

    def _create_unless_found(
        self, event: BookingEvent, query: IdentityQuery, selection: Selection
    ) -> ReconciliationResult:
        """Create the record, looking it up again before every retry.

        A create that fails in transit may already have been committed.
        """

        fields = merge_fields(event, None, tz=self.settings.tzinfo)
        policy = self.settings.retry
        for attempt in range(1, policy.attempts + 1):
            try:
                record = self.store.create(fields)
            except StoreUnavailableError as exc:
                if attempt == policy.attempts:
                    log.error(
                        "create %s failed after %s attempt(s): %s",
                        fields.booking_code,
                        attempt,
                        exc,
                    )
                    raise
                delay = policy.delay_for(attempt)
                log.warning(
                    "create %s failed (%s), looking it up before retrying in %.2fs",
                    fields.booking_code,
                    exc,
                    delay,
                )
                self.sleep(delay)
                found = plan_selection(event.status, self._find(query))
                if found.canonical is not None:
                    log.info(
                        "Booking %s was stored by a failed create (%s), updating instead",
                        fields.booking_code,
                        found.canonical.record_id,
                    )
                    return self._apply(event, found, found.canonical)
                continue

            log.info("Created booking %s (%s)", fields.booking_code, record.record_id)
            return self._finish(
                ReconciliationResult(
                    action=ReconcileAction.CREATED,
                    record_id=record.record_id,
                    final_status=record.status,
                    reason=selection.reason,
                ),
                record.fields,
            )
        raise AssertionError("unreachable")  # pragma: no cover

    def _find(self, query: IdentityQuery) -> list[BookingRecord]:
        return self._call(
            lambda: self.store.find(query.record_filter),
            f"find {query.strategy.value}={'/'.join(query.key)}",
        )

    def _create(self, fields: BookingFields) -> BookingRecord:
        return self._call(lambda: self.store.create(fields), f"create {fields.booking_code}")

    def _cleanup(self, canonical_id: str, sibling_ids: tuple[str, ...]) -> CleanupReport:
        try:
            return cleanup_duplicates(
                self.store,
                canonical_id,
                sibling_ids,
                batch_size=self.settings.cleanup_batch_size,
                retry=self.settings.retry,
                sleep=self.sleep,
            )
        except PartialCleanupFailure as exc:
            log.warning("Duplicate cleanup incomplete: %s", exc)
            return exc.report

    def _finish(self, result: ReconciliationResult, fields: BookingFields) -> ReconciliationResult:
        if self.notifications is None:
            return result
        try:
            self.notifications.notify(
                result.action,
                fields,
                previous_status=result.previous_status,
            )
        except Exception:
            log.exception("Notification for %s failed", result.record_id)
        return result


__all__ = [
    "BookingReconciler",
    "ReconcilerSettings",
    "ReconciliationResult",
    "validate_event",
]
