"""SQLAlchemy table metadata for booking records."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


booking_table = Table(
    "booking",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("booking_code", String(64), nullable=True),
    Column("customer_name", String(255), nullable=True),
    Column("customer_email", String(255), nullable=True),
    Column("status", String(16), nullable=False),
    Column("total_cents", Integer, nullable=False, default=0),
    Column("booking_items", Text, nullable=True),
    Column("addons", Text, nullable=True),
    Column("starts_at", UTCDateTime(), nullable=True),
    Column("ends_at", UTCDateTime(), nullable=True),
    Column("booked_at", UTCDateTime(), nullable=True),
    Column("booking_date", String(10), nullable=True),
    Column("end_date", String(10), nullable=True),
    Column("created_date", String(10), nullable=True),
    Column("start_time", String(8), nullable=True),
    Column("finish_time", String(8), nullable=True),
    Column("duration", String(64), nullable=True),
    Column("onboarding_staff", JSON, nullable=False, default=list),
    Column("deloading_staff", JSON, nullable=False, default=list),
    Index("ix_booking_booking_code", "booking_code"),
    Index("ix_booking_email_start", "customer_email", "booking_date", "start_time"),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)
    log.debug("Booking tables ensured on %s", engine.url.render_as_string(hide_password=True))


__all__ = ["UTCDateTime", "booking_table", "create_all_tables", "metadata"]
