"""Record store backed by a relational database through SQLAlchemy core."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import and_, create_engine, delete, insert, select, true, update
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from booksync.domain.errors import RecordNotFoundError, StoreError, StoreUnavailableError
from booksync.domain.model import (
    BookingFields,
    BookingRecord,
    StaffRef,
    format_addons,
    parse_addons,
)

from .mappings import booking_table, create_all_tables

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence
    from contextlib import AbstractContextManager

    from sqlalchemy.engine import Connection, Engine, RowMapping

    from booksync.domain.ports import RecordFilter, RecordStore

log = getLogger(__name__)

SQL_MAX_BATCH_SIZE: Final[int] = 100
_CENT: Final = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_record_id() -> str:
    return uuid.uuid4().hex


def _to_cents(amount: Decimal) -> int:
    return int((amount / _CENT).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * _CENT).quantize(_CENT)


def _dump_staff(refs: Iterable[StaffRef]) -> list[dict[str, str | None]]:
    return [
        {"id": ref.staff_id, "name": ref.name}
        for ref in sorted(refs, key=lambda ref: ref.staff_id)
    ]


def _load_staff(raw: list[dict[str, Any]] | None) -> frozenset[StaffRef]:
    return frozenset(StaffRef(staff_id=str(item["id"]), name=item.get("name")) for item in raw or [])


def _row_values(fields: BookingFields) -> dict[str, object]:
    return {
        "booking_code": fields.booking_code,
        "customer_name": fields.customer_name,
        "customer_email": fields.customer_email,
        "status": fields.status,
        "total_cents": _to_cents(fields.total_amount),
        "booking_items": fields.booking_items,
        "addons": format_addons(fields.addons) or None,
        "starts_at": fields.starts_at,
        "ends_at": fields.ends_at,
        "booked_at": fields.booked_at,
        "booking_date": fields.booking_date,
        "end_date": fields.end_date,
        "created_date": fields.created_date,
        "start_time": fields.start_time,
        "finish_time": fields.finish_time,
        "duration": fields.duration,
        "onboarding_staff": _dump_staff(fields.onboarding_staff),
        "deloading_staff": _dump_staff(fields.deloading_staff),
    }


def _record_from_row(row: RowMapping) -> BookingRecord:
    fields = BookingFields(
        booking_code=row["booking_code"],
        customer_name=row["customer_name"],
        customer_email=row["customer_email"],
        status=row["status"],
        total_amount=_from_cents(row["total_cents"]),
        booking_items=row["booking_items"],
        addons=parse_addons(row["addons"]),
        starts_at=row["starts_at"],
        ends_at=row["ends_at"],
        booked_at=row["booked_at"],
        booking_date=row["booking_date"],
        end_date=row["end_date"],
        created_date=row["created_date"],
        start_time=row["start_time"],
        finish_time=row["finish_time"],
        duration=row["duration"],
        onboarding_staff=_load_staff(row["onboarding_staff"]),
        deloading_staff=_load_staff(row["deloading_staff"]),
    )
    return BookingRecord(record_id=row["id"], fields=fields, created_at=row["created_at"])


@dataclass(slots=True)
class SqlAlchemyRecordStore:
    """``RecordStore`` over a single ``booking`` table.

    Filter values are always bound as parameters. Every write runs in its own
    transaction, so a batch delete removes all of its ids or none of them.
    """

    engine: Engine
    max_batch_size: int = SQL_MAX_BATCH_SIZE
    clock: Callable[[], datetime] = field(default=_utcnow)
    id_factory: Callable[[], str] = field(default=_new_record_id)

    @classmethod
    def from_uri(cls, uri: str, *, pool_timeout: float = 10.0) -> SqlAlchemyRecordStore:
        if uri.startswith("sqlite"):
            engine = create_engine(uri, future=True)
        else:
            engine = create_engine(uri, future=True, pool_timeout=pool_timeout, pool_pre_ping=True)
        create_all_tables(engine)
        return cls(engine=engine)

    def find(self, record_filter: RecordFilter) -> list[BookingRecord]:
        clauses = [booking_table.c[predicate.field] == predicate.value for predicate in record_filter]
        statement = (
            select(booking_table)
            .where(and_(true(), *clauses))
            .order_by(booking_table.c.created_at, booking_table.c.id)
        )
        with self._connect() as connection:
            rows = connection.execute(statement).mappings().all()
        return [_record_from_row(row) for row in rows]

    def get(self, record_id: str) -> BookingRecord:
        statement = select(booking_table).where(booking_table.c.id == record_id)
        with self._connect() as connection:
            row = connection.execute(statement).mappings().first()
        if row is None:
            raise RecordNotFoundError(record_id)
        return _record_from_row(row)

    def create(self, fields: BookingFields) -> BookingRecord:
        record_id = self.id_factory()
        created_at = self.clock()
        values = _row_values(fields) | {"id": record_id, "created_at": created_at}
        with self._begin() as connection:
            connection.execute(insert(booking_table).values(**values))
        return BookingRecord(record_id=record_id, fields=fields, created_at=created_at)

    def update(self, record_id: str, fields: BookingFields) -> BookingRecord:
        statement = (
            update(booking_table).where(booking_table.c.id == record_id).values(**_row_values(fields))
        )
        with self._begin() as connection:
            result = connection.execute(statement)
            if result.rowcount == 0:
                raise RecordNotFoundError(record_id)
        return self.get(record_id)

    def delete(self, record_ids: Sequence[str]) -> None:
        if len(record_ids) > self.max_batch_size:
            raise ValueError(f"Cannot delete more than {self.max_batch_size} records at once")
        if not record_ids:
            return
        statement = delete(booking_table).where(booking_table.c.id.in_(list(record_ids)))
        with self._begin() as connection:
            result = connection.execute(statement)
        log.debug("Deleted %s of %s requested booking row(s)", result.rowcount, len(record_ids))

    def _connect(self) -> AbstractContextManager[Connection]:
        return _translated(self.engine.connect)

    def _begin(self) -> AbstractContextManager[Connection]:
        return _translated(self.engine.begin)


@contextmanager
def _translated(opener: Callable[[], AbstractContextManager[Connection]]) -> Iterator[Connection]:
    try:
        with opener() as connection:
            yield connection
    except (OperationalError, PoolTimeoutError) as exc:
        raise StoreUnavailableError(f"Database unavailable: {exc}") from exc
    except DBAPIError as exc:
        raise StoreError(f"Database error: {exc}") from exc


if TYPE_CHECKING:
    _store_check: RecordStore = SqlAlchemyRecordStore(engine=create_engine("sqlite://"))

__all__ = ["SQL_MAX_BATCH_SIZE", "SqlAlchemyRecordStore"]
