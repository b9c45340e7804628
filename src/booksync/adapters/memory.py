"""In-process implementations of the store and notification ports.

Used by the test suite and by ``BOOKSYNC_STORE=memory`` for dry local runs.
Failure hooks let tests script transient outages without monkeypatching.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from itertools import count
from logging import getLogger
from typing import TYPE_CHECKING

from booksync.domain.errors import (
    PartialDeleteError,
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from booksync.domain.model import BookingRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from booksync.domain.model import BookingFields
    from booksync.domain.ports import RecordFilter

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class InMemoryRecordStore:
    """Dictionary-backed record store with monotonically increasing ids.

    ``fail_next`` holds operation names (``"find"``, ``"create"``, ``"update"``,
    ``"delete"``) that raise ``StoreUnavailableError`` once each, in order.
    ``fail_after`` does the same for ``create`` and ``update`` but only after the
    write has been applied, like a request that times out once committed.
    ``reject_next`` raises a non-retryable ``StoreError`` instead.
    ``delete_limit`` makes the next delete remove only that many ids before
    raising ``PartialDeleteError``.
    """

    max_batch_size: int = 10
    clock: Callable[[], datetime] = _utcnow
    fail_next: list[str] = field(default_factory=list[str])
    fail_after: list[str] = field(default_factory=list[str])
    reject_next: list[str] = field(default_factory=list[str])
    delete_limit: int | None = None
    records: dict[str, BookingRecord] = field(default_factory=dict[str, BookingRecord])
    calls: list[tuple[str, object]] = field(default_factory=list[tuple[str, object]])
    _ids: Iterator[int] = field(default_factory=lambda: count(1))

    def seed(self, fields: BookingFields, *, created_at: datetime | None = None) -> BookingRecord:
        """Insert a record directly, bypassing failure hooks and call tracking."""

        record = BookingRecord(
            record_id=self._next_id(),
            fields=fields,
            created_at=created_at or self.clock(),
        )
        self.records[record.record_id] = record
        return record

    def find(self, record_filter: RecordFilter) -> list[BookingRecord]:
        self._enter("find", record_filter)
        return [
            record
            for record in self.records.values()
            if all(
                getattr(record.fields, predicate.field) == predicate.value
                for predicate in record_filter
            )
        ]

    def get(self, record_id: str) -> BookingRecord:
        self._enter("get", record_id)
        try:
            return self.records[record_id]
        except KeyError:
            raise RecordNotFoundError(record_id) from None

    def create(self, fields: BookingFields) -> BookingRecord:
        self._enter("create", fields)
        record = BookingRecord(record_id=self._next_id(), fields=fields, created_at=self.clock())
        self.records[record.record_id] = record
        self._leave("create")
        return record

    def update(self, record_id: str, fields: BookingFields) -> BookingRecord:
        self._enter("update", record_id)
        current = self.records.get(record_id)
        if current is None:
            raise RecordNotFoundError(record_id)
        record = BookingRecord(record_id=record_id, fields=fields, created_at=current.created_at)
        self.records[record_id] = record
        self._leave("update")
        return record

    def delete(self, record_ids: Sequence[str]) -> None:
        if len(record_ids) > self.max_batch_size:
            raise ValueError(
                f"Cannot delete {len(record_ids)} records at once (limit {self.max_batch_size})"
            )
        self._enter("delete", tuple(record_ids))
        limit = self.delete_limit
        if limit is not None:
            self.delete_limit = None
            removed = [rid for rid in record_ids[:limit] if self.records.pop(rid, None)]
            raise PartialDeleteError(
                f"Deleted {len(removed)} of {len(record_ids)} records", deleted=removed
            )
        for record_id in record_ids:
            self.records.pop(record_id, None)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _enter(self, operation: str, argument: object) -> None:
        self.calls.append((operation, argument))
        if self.reject_next and self.reject_next[0] == operation:
            self.reject_next.pop(0)
            raise StoreError(f"Simulated rejection of {operation}")
        if self.fail_next and self.fail_next[0] == operation:
            self.fail_next.pop(0)
            raise StoreUnavailableError(f"Simulated outage during {operation}")

    def _leave(self, operation: str) -> None:
        if self.fail_after and self.fail_after[0] == operation:
            self.fail_after.pop(0)
            raise StoreUnavailableError(f"Simulated timeout after {operation}")

    def _next_id(self) -> str:
        return f"rec{next(self._ids):05d}"


@dataclass(slots=True)
class InMemoryTTLTracker:
    """Expiring key-value store evaluated against an injectable clock."""

    clock: Callable[[], datetime] = _utcnow
    _entries: dict[str, tuple[str, datetime]] = field(
        default_factory=dict[str, tuple[str, datetime]]
    )

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: str, *, ttl: timedelta) -> None:
        self._entries[key] = (value, self.clock() + ttl)


@dataclass(slots=True)
class RecordingNotifier:
    """Notifier that keeps every message instead of delivering it."""

    deliver: bool = True
    sent: list[tuple[str, str]] = field(default_factory=list[tuple[str, str]])

    def send(self, recipient: str, message: str) -> bool:
        if not self.deliver:
            return False
        log.info("Recorded message for %s", recipient)
        self.sent.append((recipient, message))
        return True


__all__ = ["InMemoryRecordStore", "InMemoryTTLTracker", "RecordingNotifier"]
