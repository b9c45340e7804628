"""SQLAlchemy adapter for booking records."""

from __future__ import annotations

from .mappings import UTCDateTime, booking_table, create_all_tables, metadata
from .store import SQL_MAX_BATCH_SIZE, SqlAlchemyRecordStore

__all__ = [
    "SQL_MAX_BATCH_SIZE",
    "SqlAlchemyRecordStore",
    "UTCDateTime",
    "booking_table",
    "create_all_tables",
    "metadata",
]
