"""Store-wide duplicate sweep.

Reconciliation only collapses duplicates of the booking it is handling. The sweep
walks every record, groups by booking code and collapses each group that already
has a ``PAID`` record. Groups without one are left alone and reported for manual
review, since the true outcome of those bookings is still open.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING

from booksync.domain.errors import PartialCleanupFailure, StoreError
from booksync.domain.model import BookingStatus

from .cleanup import DEFAULT_CLEANUP_BATCH_SIZE, cleanup_duplicates
from .merge import union_staff
from .retry import RetryPolicy, call_with_retry
from .select import dedupe_candidates, select_canonical

if TYPE_CHECKING:
    from collections.abc import Iterable

    from booksync.domain.model import BookingRecord, StaffRef
    from booksync.domain.ports import RecordStore

    from .retry import Sleep

log = getLogger(__name__)

# Zero-priced line items that legitimately produce a PAID booking with no amount.
ZERO_AMOUNT_ITEMS = frozenset({"icebag"})


@dataclass(slots=True, frozen=True)
class DuplicateGroup:
    booking_code: str
    keep: BookingRecord | None
    delete: tuple[BookingRecord, ...]
    staff_merge_needed: bool = False

    @property
    def needs_review(self) -> bool:
        return self.keep is None


@dataclass(slots=True)
class SweepReport:
    applied: bool
    groups: list[DuplicateGroup] = field(default_factory=list[DuplicateGroup])
    deleted: list[str] = field(default_factory=list[str])
    failed: list[str] = field(default_factory=list[str])
    updated: list[str] = field(default_factory=list[str])

    @property
    def manual_review(self) -> list[DuplicateGroup]:
        return [group for group in self.groups if group.needs_review]

    @property
    def pending_deletions(self) -> int:
        return sum(len(group.delete) for group in self.groups)


def group_by_booking_code(records: Iterable[BookingRecord]) -> dict[str, list[BookingRecord]]:
    groups: dict[str, list[BookingRecord]] = defaultdict(list)
    for record in dedupe_candidates(records):
        code = (record.booking_code or "").strip()
        if code:
            groups[code].append(record)
    return dict(groups)


def plan_group(booking_code: str, records: list[BookingRecord]) -> DuplicateGroup:
    # PAID ranks highest, so the canonical record is PAID whenever any record is
    keep = select_canonical(records)
    if keep is None or keep.status != BookingStatus.PAID:
        return DuplicateGroup(booking_code=booking_code, keep=None, delete=())

    delete = tuple(
        sorted(
            (record for record in records if record.record_id != keep.record_id),
            key=lambda record: record.record_id,
        )
    )
    merged_onboarding, merged_deloading = _merged_staff(keep, records)
    return DuplicateGroup(
        booking_code=booking_code,
        keep=keep,
        delete=delete,
        staff_merge_needed=(
            merged_onboarding != keep.fields.onboarding_staff
            or merged_deloading != keep.fields.deloading_staff
        ),
    )


def _merged_staff(
    keep: BookingRecord, records: Iterable[BookingRecord]
) -> tuple[frozenset[StaffRef], frozenset[StaffRef]]:
    onboarding = keep.fields.onboarding_staff
    deloading = keep.fields.deloading_staff
    for record in records:
        onboarding = union_staff(onboarding, record.fields.onboarding_staff)
        deloading = union_staff(deloading, record.fields.deloading_staff)
    return onboarding, deloading


def sweep_duplicates(
    store: RecordStore,
    *,
    apply: bool = False,
    batch_size: int = DEFAULT_CLEANUP_BATCH_SIZE,
    retry: RetryPolicy | None = None,
    sleep: Sleep = time.sleep,
) -> SweepReport:
    """Plan (and with ``apply=True`` perform) the collapse of duplicate groups."""

    policy = retry or RetryPolicy()
    records = call_with_retry(
        lambda: store.find(()),
        policy=policy,
        description="find all bookings",
        sleep=sleep,
    )
    report = SweepReport(applied=apply)
    for booking_code, group_records in sorted(group_by_booking_code(records).items()):
        if len(group_records) < 2:
            continue
        group = plan_group(booking_code, group_records)
        report.groups.append(group)
        keep = group.keep
        if keep is None:
            statuses = ", ".join(record.status for record in group_records)
            log.warning("No PAID record for %s (%s), needs manual review", booking_code, statuses)
            continue
        if keep.total_amount == Decimal(0) and (
            (keep.fields.booking_items or "").lower() not in ZERO_AMOUNT_ITEMS
        ):
            log.warning("PAID record for %s has a zero amount", booking_code)
        if apply:
            _apply_group(store, keep, group, group_records, report, batch_size, policy, sleep)

    log.info(
        "Sweep %s: %s duplicated code(s), %s record(s) to delete, %s for manual review",
        "applied" if apply else "planned",
        len(report.groups),
        report.pending_deletions,
        len(report.manual_review),
    )
    return report


def _apply_group(
    store: RecordStore,
    keep: BookingRecord,
    group: DuplicateGroup,
    records: list[BookingRecord],
    report: SweepReport,
    batch_size: int,
    policy: RetryPolicy,
    sleep: Sleep,
) -> None:
    delete_ids = [record.record_id for record in group.delete]
    if group.staff_merge_needed:
        onboarding, deloading = _merged_staff(keep, records)
        fields = replace(keep.fields, onboarding_staff=onboarding, deloading_staff=deloading)
        try:
            call_with_retry(
                lambda: store.update(keep.record_id, fields),
                policy=policy,
                description=f"update {keep.record_id}",
                sleep=sleep,
            )
        except StoreError as exc:
            # deleting now would drop the staff held only by the duplicates
            log.error("Staff merge for %s failed, keeping duplicates: %s", group.booking_code, exc)
            report.failed.extend(delete_ids)
            return
        report.updated.append(keep.record_id)

    try:
        cleanup = cleanup_duplicates(
            store,
            keep.record_id,
            delete_ids,
            batch_size=batch_size,
            retry=policy,
            sleep=sleep,
        )
    except PartialCleanupFailure as exc:
        log.warning("Sweep cleanup incomplete for %s: %s", group.booking_code, exc)
        cleanup = exc.report
    report.deleted.extend(cleanup.deleted)
    report.failed.extend(cleanup.failed)


__all__ = [
    "DuplicateGroup",
    "SweepReport",
    "group_by_booking_code",
    "plan_group",
    "sweep_duplicates",
]
