from __future__ import annotations

from decimal import Decimal

import pytest

from booksync.adapters.memory import InMemoryRecordStore
from booksync.domain.reconciliation import sweep_duplicates
from tests.helpers.bookings import RecordedSleep, make_fields, staff


def test_dry_run_plans_without_writing(store: InMemoryRecordStore, sleep: RecordedSleep) -> None:
    paid = store.seed(make_fields(status="PAID"))
    pending = store.seed(make_fields(status="PEND"))
    store.seed(make_fields(booking_code="MBH-2000"))

    report = sweep_duplicates(store, sleep=sleep)

    assert not report.applied
    assert len(report.groups) == 1
    group = report.groups[0]
    assert group.keep == paid
    assert group.delete == (pending,)
    assert report.pending_deletions == 1
    assert store.call_names() == ["find"]
    assert len(store.records) == 3


def test_apply_deletes_and_merges_staff(store: InMemoryRecordStore, sleep: RecordedSleep) -> None:
    paid = store.seed(make_fields(status="PAID", onboarding_staff=staff("recAlex")))
    store.seed(make_fields(status="PEND", deloading_staff=staff("recJo")))
    store.seed(make_fields(status="PAID", total_amount=Decimal(0)))

    report = sweep_duplicates(store, apply=True, sleep=sleep)

    assert list(store.records) == [paid.record_id]
    assert report.updated == [paid.record_id]
    assert len(report.deleted) == 2
    kept = store.records[paid.record_id].fields
    assert kept.onboarding_staff == staff("recAlex")
    assert kept.deloading_staff == staff("recJo")


def test_groups_without_paid_need_review(
    store: InMemoryRecordStore, sleep: RecordedSleep, caplog: pytest.LogCaptureFixture
) -> None:
    store.seed(make_fields(status="PEND"))
    store.seed(make_fields(status="PART"))

    report = sweep_duplicates(store, apply=True, sleep=sleep)

    assert [group.booking_code for group in report.manual_review] == ["MBH-1001"]
    assert len(store.records) == 2
    assert "manual review" in caplog.text


def test_zero_amount_paid_is_flagged(
    store: InMemoryRecordStore, sleep: RecordedSleep, caplog: pytest.LogCaptureFixture
) -> None:
    store.seed(make_fields(status="PAID", total_amount=Decimal(0)))
    store.seed(make_fields(status="PEND", total_amount=Decimal(0)))

    sweep_duplicates(store, sleep=sleep)

    assert "zero amount" in caplog.text


def test_icebag_bookings_may_be_free(
    store: InMemoryRecordStore, sleep: RecordedSleep, caplog: pytest.LogCaptureFixture
) -> None:
    store.seed(make_fields(status="PAID", total_amount=Decimal(0), booking_items="icebag"))
    store.seed(make_fields(status="PEND", total_amount=Decimal(0), booking_items="icebag"))

    sweep_duplicates(store, sleep=sleep)

    assert "zero amount" not in caplog.text


def test_failed_staff_merge_keeps_group_and_continues(
    store: InMemoryRecordStore, sleep: RecordedSleep
) -> None:
    paid = store.seed(make_fields(status="PAID", onboarding_staff=staff("recAlex")))
    pending = store.seed(make_fields(status="PEND", deloading_staff=staff("recJo")))
    other_paid = store.seed(make_fields(booking_code="MBH-2000", status="PAID"))
    other_pending = store.seed(make_fields(booking_code="MBH-2000", status="PEND"))
    store.reject_next = ["update"]

    report = sweep_duplicates(store, apply=True, sleep=sleep)

    assert report.failed == [pending.record_id]
    assert report.updated == []
    assert report.deleted == [other_pending.record_id]
    assert pending.record_id in store.records
    assert store.records[paid.record_id].fields.deloading_staff == frozenset()
    assert other_paid.record_id in store.records


def test_rejected_delete_does_not_stop_sweep(
    store: InMemoryRecordStore, sleep: RecordedSleep
) -> None:
    store.seed(make_fields(status="PAID"))
    pending = store.seed(make_fields(status="PEND"))
    store.seed(make_fields(booking_code="MBH-2000", status="PAID"))
    other_pending = store.seed(make_fields(booking_code="MBH-2000", status="PEND"))
    store.reject_next = ["delete"]

    report = sweep_duplicates(store, apply=True, sleep=sleep)

    assert report.failed == [pending.record_id]
    assert report.deleted == [other_pending.record_id]
    assert sleep.delays == []
