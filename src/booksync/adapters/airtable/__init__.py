"""Public interface for the Airtable adapter."""

from __future__ import annotations

from .formula import build_formula, quote_string
from .schema import AirtableRecordPayload, BookingFieldsPayload, RecordListResponse
from .store import AIRTABLE_MAX_BATCH_SIZE, AirtableRecordStore
from .translator import booking_fields_to_row, parse_booking_record

__all__ = [
    "AIRTABLE_MAX_BATCH_SIZE",
    "AirtableRecordPayload",
    "AirtableRecordStore",
    "BookingFieldsPayload",
    "RecordListResponse",
    "booking_fields_to_row",
    "build_formula",
    "parse_booking_record",
    "quote_string",
]
