"""Domain port definitions for adapters."""

from __future__ import annotations

from .notifications import ExpiringKeyValueStore, Notifier
from .store import FILTERABLE_FIELDS, FieldEquals, RecordFilter, RecordStore

__all__ = [
    "FILTERABLE_FIELDS",
    "ExpiringKeyValueStore",
    "FieldEquals",
    "Notifier",
    "RecordFilter",
    "RecordStore",
]
