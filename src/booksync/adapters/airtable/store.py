"""Record store backed by an Airtable bookings table."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from booksync.adapters.http_resilience import ResilientClient
from booksync.config.airtable import AirtableConfig, get_airtable_config
from booksync.domain.errors import (
    PartialDeleteError,
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
)

from .formula import build_formula
from .schema import AirtableRecordPayload, DeleteResponse, ErrorResponse, RecordListResponse
from .translator import booking_fields_to_row, parse_booking_record

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from booksync.config.http_resilience import ResilienceConfig
    from booksync.domain.model import BookingFields, BookingRecord
    from booksync.domain.ports import RecordFilter, RecordStore

log = getLogger(__name__)

AIRTABLE_MAX_BATCH_SIZE: Final[int] = 10
AIRTABLE_PAGE_SIZE: Final[int] = 100
_RETRYABLE_STATUS: Final = frozenset({429, 500, 502, 503, 504})


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _describe(response: httpx.Response) -> str:
    try:
        return ErrorResponse.model_validate(response.json()).description
    except (ValueError, PydanticValidationError):
        return response.text[:200] or response.reason_phrase


def _raise_for_status(response: httpx.Response, *, record_id: str | None = None) -> None:
    if response.is_success:
        return
    status = response.status_code
    detail = _describe(response)
    if status == 404 and record_id is not None:
        raise RecordNotFoundError(record_id)
    if status in _RETRYABLE_STATUS:
        raise StoreUnavailableError(f"Airtable returned {status}: {detail}")
    raise StoreError(f"Airtable returned {status}: {detail}")


@dataclass(slots=True)
class AirtableRecordStore:
    """``RecordStore`` over the Airtable REST API.

    Each call runs its own event loop and HTTP client, so the store can be used
    from synchronous code such as the reconciler and the CLI.
    """

    config: AirtableConfig = field(default_factory=get_airtable_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    max_batch_size: int = AIRTABLE_MAX_BATCH_SIZE

    @property
    def table_path(self) -> str:
        return f"{quote(self.config.base_id, safe='')}/{quote(self.config.bookings_table, safe='')}"

    def _record_path(self, record_id: str) -> str:
        return f"{self.table_path}/{quote(record_id, safe='')}"

    def find(self, record_filter: RecordFilter) -> list[BookingRecord]:
        return self._run(self._find(record_filter))

    def get(self, record_id: str) -> BookingRecord:
        return self._run(self._get(record_id))

    def create(self, fields: BookingFields) -> BookingRecord:
        return self._run(self._create(fields))

    def update(self, record_id: str, fields: BookingFields) -> BookingRecord:
        return self._run(self._update(record_id, fields))

    def delete(self, record_ids: Sequence[str]) -> None:
        if len(record_ids) > self.max_batch_size:
            raise ValueError(
                f"Airtable deletes at most {self.max_batch_size} records per request"
            )
        if record_ids:
            self._run(self._delete(list(record_ids)))

    def _run[T](self, coroutine: Awaitable[T]) -> T:
        async def runner() -> T:
            try:
                return await coroutine
            except httpx.TimeoutException as exc:
                raise StoreUnavailableError(f"Airtable request timed out: {exc}") from exc
            except httpx.TransportError as exc:
                raise StoreUnavailableError(f"Airtable request failed: {exc}") from exc

        return asyncio.run(runner())

    async def _find(self, record_filter: RecordFilter) -> list[BookingRecord]:
        formula = build_formula(record_filter)
        records: list[BookingRecord] = []
        offset: str | None = None
        async with self.client_factory(self.config.resilience) as client:
            while True:
                params: dict[str, str | int] = {"pageSize": AIRTABLE_PAGE_SIZE}
                if formula is not None:
                    params["filterByFormula"] = formula
                if offset is not None:
                    params["offset"] = offset
                response = await client.get(self.table_path, params=params)
                _raise_for_status(response)
                page = RecordListResponse.model_validate(response.json())
                records.extend(parse_booking_record(payload) for payload in page.records)
                if page.offset is None:
                    break
                offset = page.offset
        log.debug("Airtable find %s returned %s record(s)", formula, len(records))
        return records

    async def _get(self, record_id: str) -> BookingRecord:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.get(self._record_path(record_id))
        _raise_for_status(response, record_id=record_id)
        return parse_booking_record(AirtableRecordPayload.model_validate(response.json()))

    async def _create(self, fields: BookingFields) -> BookingRecord:
        body = {"fields": booking_fields_to_row(fields), "typecast": True}
        async with self.client_factory(self.config.resilience) as client:
            response = await client.post(self.table_path, json=body)
        _raise_for_status(response)
        return parse_booking_record(AirtableRecordPayload.model_validate(response.json()))

    async def _update(self, record_id: str, fields: BookingFields) -> BookingRecord:
        body = {"fields": booking_fields_to_row(fields), "typecast": True}
        async with self.client_factory(self.config.resilience) as client:
            response = await client.patch(self._record_path(record_id), json=body)
        _raise_for_status(response, record_id=record_id)
        return parse_booking_record(AirtableRecordPayload.model_validate(response.json()))

    async def _delete(self, record_ids: list[str]) -> None:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.delete(
                self.table_path, params=[("records[]", record_id) for record_id in record_ids]
            )
            if response.status_code != 404:
                _raise_for_status(response)
                DeleteResponse.model_validate(response.json())
                return

            # One unknown id fails the whole batch; fall back to single deletes.
            log.info("Batch delete hit a missing record, deleting %s one by one", len(record_ids))
            deleted: list[str] = []
            for record_id in record_ids:
                try:
                    single = await client.delete(self._record_path(record_id))
                    if single.status_code != 404:
                        _raise_for_status(single)
                except (StoreError, httpx.TransportError) as exc:
                    raise PartialDeleteError(
                        f"Airtable delete stopped at {record_id}: {exc}", deleted=deleted
                    ) from exc
                deleted.append(record_id)


if TYPE_CHECKING:
    _store_check: RecordStore = AirtableRecordStore()

__all__ = ["AIRTABLE_MAX_BATCH_SIZE", "AirtableRecordStore"]
