"""Application orchestration entry points."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from booksync.adapters.checkfront import parse_booking_event
from booksync.config import (
    StoreBackend,
    get_database_config,
    get_reconciler_settings,
    get_store_backend,
)
from booksync.domain.errors import ValidationError
from booksync.domain.reconciliation import BookingReconciler, sweep_duplicates

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from booksync.domain.model import BookingEvent
    from booksync.domain.notifications import BookingNotifications
    from booksync.domain.ports import RecordStore
    from booksync.domain.reconciliation import (
        ReconcilerSettings,
        ReconciliationResult,
        SweepReport,
    )

log = getLogger(__name__)


def build_record_store(backend: StoreBackend | None = None) -> RecordStore:
    """Record store selected by ``BOOKSYNC_STORE`` unless ``backend`` is given."""

    effective = backend or get_store_backend()
    log.debug("Using %s record store", effective.value)
    if effective is StoreBackend.AIRTABLE:
        from booksync.adapters.airtable import AirtableRecordStore  # noqa: PLC0415

        return AirtableRecordStore()
    if effective is StoreBackend.SQLALCHEMY:
        from booksync.adapters.sqlalchemy import SqlAlchemyRecordStore  # noqa: PLC0415

        return SqlAlchemyRecordStore.from_uri(get_database_config().uri)

    from booksync.adapters.memory import InMemoryRecordStore  # noqa: PLC0415

    log.warning("In-memory record store selected, nothing will be persisted")
    return InMemoryRecordStore()


def build_reconciler(
    *,
    store: RecordStore | None = None,
    settings: ReconcilerSettings | None = None,
    notifications: BookingNotifications | None = None,
) -> BookingReconciler:
    """Wire a reconciler from the environment.

    Notifications are a library hook: callers that own a ``Notifier`` pass a
    ``BookingNotifications`` here. The CLI runs without them.
    """

    return BookingReconciler(
        store=store or build_record_store(),
        settings=settings or get_reconciler_settings(),
        notifications=notifications,
    )


def load_webhook_payload(path: Path) -> dict[str, object]:
    """Read a webhook body saved as JSON; malformed files raise ``ValidationError``."""

    try:
        with path.open(encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError(f"{path} must contain a JSON object")
    return payload


def event_from_webhook(payload: Mapping[str, object]) -> BookingEvent:
    try:
        return parse_booking_event(payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"Malformed booking webhook: {exc}") from exc


def reconcile_webhook(
    payload: Mapping[str, object],
    *,
    reconciler: BookingReconciler | None = None,
) -> ReconciliationResult:
    """Reconcile one Checkfront webhook body against the configured store."""

    event = event_from_webhook(payload)
    effective = reconciler or build_reconciler()
    log.info("Reconciling booking %s (%s)", event.booking_code or "<no code>", event.status)
    result = effective.reconcile(event)
    log.info(
        "Booking %s: %s record %s, status %s",
        event.booking_code or "<no code>",
        result.action.value,
        result.record_id,
        result.final_status,
    )
    return result


def sweep_bookings(
    *,
    apply: bool = False,
    store: RecordStore | None = None,
    settings: ReconcilerSettings | None = None,
) -> SweepReport:
    """Collapse duplicate bookings across the whole store (dry run by default)."""

    effective_settings = settings or get_reconciler_settings()
    return sweep_duplicates(
        store or build_record_store(),
        apply=apply,
        batch_size=effective_settings.cleanup_batch_size,
        retry=effective_settings.retry,
    )
