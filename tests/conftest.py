from __future__ import annotations

import os

import pytest

from booksync.adapters.memory import InMemoryRecordStore, InMemoryTTLTracker, RecordingNotifier
from booksync.domain.reconciliation import BookingReconciler, ReconcilerSettings, RetryPolicy
from tests.helpers.bookings import ManualClock, RecordedSleep

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sleep() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
def store(clock: ManualClock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=clock)


@pytest.fixture
def settings() -> ReconcilerSettings:
    return ReconcilerSettings(
        timezone="Australia/Sydney",
        cleanup_batch_size=10,
        retry=RetryPolicy(attempts=3, base_delay=0.5, max_delay=8.0),
    )


@pytest.fixture
def reconciler(
    store: InMemoryRecordStore,
    settings: ReconcilerSettings,
    sleep: RecordedSleep,
) -> BookingReconciler:
    return BookingReconciler(store=store, settings=settings, sleep=sleep)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def tracker(clock: ManualClock) -> InMemoryTTLTracker:
    return InMemoryTTLTracker(clock=clock)
