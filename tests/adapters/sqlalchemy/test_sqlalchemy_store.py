from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from itertools import count
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, select

from booksync.adapters.sqlalchemy import SqlAlchemyRecordStore, booking_table, create_all_tables
from booksync.domain.errors import RecordNotFoundError
from booksync.domain.model import AddOn, ReconcileAction, StaffRef
from booksync.domain.ports import FieldEquals, RecordStore
from booksync.domain.reconciliation import BookingReconciler, ReconcilerSettings
from tests.helpers.bookings import ManualClock, RecordedSleep, make_event, make_fields, staff

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def sql_store(clock: ManualClock) -> Iterator[SqlAlchemyRecordStore]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    sequence = count(1)
    yield SqlAlchemyRecordStore(
        engine=engine, clock=clock, id_factory=lambda: f"row{next(sequence):03d}"
    )
    engine.dispose()


def test_store_satisfies_port(sql_store: SqlAlchemyRecordStore) -> None:
    assert isinstance(sql_store, RecordStore)


def test_create_and_get_round_trip(sql_store: SqlAlchemyRecordStore) -> None:
    fields = make_fields(
        status="PART",
        total_amount=Decimal("99.95"),
        addons=(AddOn(name="Lilly Pad", quantity=2, unit_price=Decimal("27.50")),),
        onboarding_staff=frozenset({StaffRef(staff_id="recAlex", name="Alex")}),
    )

    created = sql_store.create(fields)
    loaded = sql_store.get(created.record_id)

    assert created.record_id == "row001"
    assert loaded.fields == fields
    assert loaded.created_at == created.created_at
    assert loaded.fields.starts_at == fields.starts_at


def test_amount_is_stored_in_cents(sql_store: SqlAlchemyRecordStore) -> None:
    created = sql_store.create(make_fields(total_amount=Decimal("250.005")))

    with sql_store.engine.connect() as connection:
        cents = connection.execute(
            select(booking_table.c.total_cents).where(booking_table.c.id == created.record_id)
        ).scalar_one()

    assert cents == 25001
    assert sql_store.get(created.record_id).total_amount == Decimal("250.01")


def test_find_applies_every_predicate_in_creation_order(
    sql_store: SqlAlchemyRecordStore, clock: ManualClock
) -> None:
    first = sql_store.create(make_fields())
    clock.advance(timedelta(minutes=1))
    second = sql_store.create(make_fields(status="PAID"))
    sql_store.create(make_fields(booking_code="MBH-2002", start_time="01:00 pm"))

    by_code = sql_store.find((FieldEquals("booking_code", "MBH-1001"),))
    by_slot = sql_store.find(
        (
            FieldEquals("customer_email", "sam@example.com"),
            FieldEquals("booking_date", "2025-03-15"),
            FieldEquals("start_time", "10:00 am"),
        )
    )

    assert [record.record_id for record in by_code] == [first.record_id, second.record_id]
    assert [record.record_id for record in by_slot] == [first.record_id, second.record_id]
    assert len(sql_store.find(())) == 3


def test_filter_values_are_bound_not_interpolated(sql_store: SqlAlchemyRecordStore) -> None:
    sql_store.create(make_fields())

    assert sql_store.find((FieldEquals("booking_code", "' OR '1'='1"),)) == []


def test_update_replaces_fields(sql_store: SqlAlchemyRecordStore) -> None:
    created = sql_store.create(make_fields())

    updated = sql_store.update(
        created.record_id, make_fields(status="PAID", deloading_staff=staff("recB"))
    )

    assert updated.status == "PAID"
    assert updated.fields.deloading_staff == staff("recB")
    assert updated.created_at == created.created_at


def test_get_and_update_unknown_id(sql_store: SqlAlchemyRecordStore) -> None:
    with pytest.raises(RecordNotFoundError):
        sql_store.get("missing")
    with pytest.raises(RecordNotFoundError):
        sql_store.update("missing", make_fields())


def test_delete_ignores_missing_ids(sql_store: SqlAlchemyRecordStore) -> None:
    keep = sql_store.create(make_fields(status="PAID"))
    drop = sql_store.create(make_fields())

    sql_store.delete([drop.record_id, "missing"])

    assert [record.record_id for record in sql_store.find(())] == [keep.record_id]


def test_delete_rejects_oversized_batch(sql_store: SqlAlchemyRecordStore) -> None:
    with pytest.raises(ValueError, match="at once"):
        sql_store.delete([str(index) for index in range(sql_store.max_batch_size + 1)])


def test_reconciler_runs_against_database(
    sql_store: SqlAlchemyRecordStore,
    settings: ReconcilerSettings,
    sleep: RecordedSleep,
    clock: ManualClock,
) -> None:
    reconciler = BookingReconciler(store=sql_store, settings=settings, sleep=sleep)
    pending = sql_store.create(make_fields(status="PEND"))
    clock.advance(timedelta(minutes=5))
    sql_store.create(make_fields(status="PEND", total_amount=Decimal(0)))

    result = reconciler.reconcile(make_event(status="PAID"))

    assert result.action is ReconcileAction.UPDATED
    assert result.record_id == pending.record_id
    assert [record.record_id for record in sql_store.find(())] == [pending.record_id]
    assert sql_store.get(pending.record_id).status == "PAID"
