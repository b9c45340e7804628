from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from booksync.domain.model import AddOn, StaffRef
from booksync.domain.reconciliation import merge_fields, union_staff
from tests.helpers.bookings import END, START, SYDNEY, make_event, make_fields, staff


def test_create_path_derives_display_fields() -> None:
    fields = merge_fields(make_event(), None, tz=SYDNEY)

    assert fields == make_fields()
    assert fields.duration == "2 hours 30 minutes"
    assert fields.start_time == "10:00 am"


def test_incoming_values_overwrite_when_present() -> None:
    existing = make_fields(customer_name="Old Name", total_amount=Decimal(100))

    merged = merge_fields(
        make_event(customer_name="New Name", total_amount=Decimal(0)), existing, tz=SYDNEY
    )

    assert merged.customer_name == "New Name"
    assert merged.total_amount == Decimal(0)


def test_absent_values_keep_stored_ones() -> None:
    existing = make_fields(customer_name="Stored", booking_items="polycraft")

    merged = merge_fields(
        make_event(customer_name="  ", booking_items=None, total_amount=None),
        existing,
        tz=SYDNEY,
    )

    assert merged.customer_name == "Stored"
    assert merged.booking_items == "polycraft"
    assert merged.total_amount == existing.total_amount


def test_duration_is_recomputed_not_copied() -> None:
    existing = make_fields(duration="9 hours 0 minutes")

    merged = merge_fields(make_event(duration_text="99 hours"), existing, tz=SYDNEY)

    assert merged.duration == "2 hours 30 minutes"


def test_duration_follows_new_end() -> None:
    merged = merge_fields(
        make_event(starts_at=None, ends_at=END + timedelta(hours=1)), make_fields(), tz=SYDNEY
    )

    assert merged.starts_at == START
    assert merged.duration == "3 hours 30 minutes"
    assert merged.finish_time == "01:30 pm"


def test_staff_is_preserved_and_unioned() -> None:
    existing = make_fields(onboarding_staff=staff("recAlex"), deloading_staff=staff("recJo"))
    event = make_event(onboarding_staff=(StaffRef(staff_id="recKim"),))

    merged = merge_fields(event, existing, tz=SYDNEY)

    assert merged.onboarding_staff == staff("recAlex", "recKim")
    assert merged.deloading_staff == staff("recJo")


def test_union_staff_keeps_stored_reference() -> None:
    existing = [StaffRef(staff_id="rec1", name="Alex")]
    incoming = [StaffRef(staff_id="rec1", name="Alexander")]

    (merged,) = union_staff(existing, incoming)

    assert merged.name == "Alex"


def test_addons_are_merged_by_name() -> None:
    existing = make_fields(addons=(AddOn(name="Kayak", unit_price=Decimal(30)),))
    event = make_event(addons=(AddOn(name="Lilly Pad", unit_price=Decimal(55)),))

    merged = merge_fields(event, existing, tz=SYDNEY)

    assert [addon.name for addon in merged.addons] == ["Kayak", "Lilly Pad"]


def test_hold_does_not_overwrite_wait() -> None:
    merged = merge_fields(make_event(status="HOLD"), make_fields(status="WAIT"), tz=SYDNEY)

    assert merged.status == "WAIT"
