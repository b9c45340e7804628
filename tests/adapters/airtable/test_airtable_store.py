from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from booksync.adapters.airtable import AirtableRecordStore
from booksync.adapters.http_resilience import ResilientClient
from booksync.config import AirtableConfig, HttpRetryPolicy, ResilienceConfig
from booksync.domain.errors import (
    PartialDeleteError,
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from booksync.domain.ports import FieldEquals, RecordStore
from tests.helpers.bookings import make_fields

if TYPE_CHECKING:
    from collections.abc import Callable

type Handler = Callable[[httpx.Request], httpx.Response]

TABLE_URL = "https://api.airtable.test/v0/appTEST/Bookings"


def _row(record_id: str, **fields: object) -> dict[str, object]:
    return {"id": record_id, "createdTime": "2025-03-01T00:00:00.000Z", "fields": fields}


def _store(handler: Handler) -> AirtableRecordStore:
    config = AirtableConfig(
        api_key="key",
        base_id="appTEST",
        bookings_table="Bookings",
        resilience=ResilienceConfig(
            name="airtable-test",
            base_url="https://api.airtable.test/v0/",
            retry=HttpRetryPolicy(total=0),
        ),
    )

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return AirtableRecordStore(config=config, client_factory=factory)


def test_store_satisfies_port() -> None:
    store = _store(lambda request: httpx.Response(200, json={}))

    assert isinstance(store, RecordStore)
    assert store.max_batch_size == 10


def test_find_follows_offset_and_sends_formula() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "offset" not in request.url.params:
            return httpx.Response(
                200, json={"records": [_row("rec1", Status="PAID")], "offset": "itr2"}
            )
        return httpx.Response(200, json={"records": [_row("rec2", Status="PEND")]})

    store = _store(handler)

    records = store.find((FieldEquals("booking_code", "MBH-1001"),))

    assert [record.record_id for record in records] == ["rec1", "rec2"]
    assert [record.status for record in records] == ["PAID", "PEND"]
    assert str(requests[0].url).startswith(TABLE_URL)
    assert requests[0].url.params["filterByFormula"] == "AND({Booking Code}='MBH-1001')"
    assert requests[0].url.params["pageSize"] == "100"
    assert requests[1].url.params["offset"] == "itr2"


def test_find_without_filter_omits_formula() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"records": []})

    assert _store(handler).find(()) == []
    assert "filterByFormula" not in seen[0].url.params


def test_create_posts_full_row() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json=_row("recNew", **body["fields"]))

    record = _store(handler).create(make_fields(status="PAID"))

    assert record.record_id == "recNew"
    assert record.status == "PAID"
    fields = bodies[0]["fields"]
    assert isinstance(fields, dict)
    assert fields["Booking Code"] == "MBH-1001"
    assert fields["Start Time"] == "10:00 am"
    assert bodies[0]["typecast"] is True


def test_update_patches_record_path() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        assert request.url.path == "/v0/appTEST/Bookings/rec1"
        body = json.loads(request.content)
        return httpx.Response(200, json=_row("rec1", **body["fields"]))

    record = _store(handler).update("rec1", make_fields(status="PART"))

    assert record.status == "PART"


def test_get_missing_record() -> None:
    store = _store(
        lambda request: httpx.Response(
            404, json={"error": {"type": "MODEL_ID_NOT_FOUND", "message": "missing"}}
        )
    )

    with pytest.raises(RecordNotFoundError):
        store.get("recMissing")


def test_server_error_is_transient() -> None:
    store = _store(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(StoreUnavailableError):
        store.find(())


def test_rate_limit_is_transient() -> None:
    store = _store(lambda request: httpx.Response(429, json={"error": "RATE_LIMIT_REACHED"}))

    with pytest.raises(StoreUnavailableError, match="RATE_LIMIT_REACHED"):
        store.get("rec1")


def test_client_error_is_not_transient() -> None:
    store = _store(
        lambda request: httpx.Response(
            422, json={"error": {"type": "INVALID_VALUE_FOR_COLUMN", "message": "bad"}}
        )
    )

    with pytest.raises(StoreError) as excinfo:
        store.create(make_fields())

    assert not isinstance(excinfo.value, StoreUnavailableError)


def test_timeout_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(StoreUnavailableError):
        _store(handler).get("rec1")


def test_batch_delete_sends_every_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"records": [{"id": "rec1", "deleted": True}, {"id": "rec2", "deleted": True}]},
        )

    _store(handler).delete(["rec1", "rec2"])

    assert len(seen) == 1
    assert seen[0].method == "DELETE"
    assert seen[0].url.params.get_list("records[]") == ["rec1", "rec2"]


def test_batch_delete_falls_back_when_an_id_is_gone() -> None:
    deleted: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get_list("records[]"):
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        record_id = request.url.path.rsplit("/", 1)[-1]
        if record_id == "recGone":
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        deleted.append(record_id)
        return httpx.Response(200, json={"id": record_id, "deleted": True})

    _store(handler).delete(["rec1", "recGone", "rec3"])

    assert deleted == ["rec1", "rec3"]


def test_fallback_delete_reports_partial_progress() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get_list("records[]"):
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        if request.url.path.endswith("/rec2"):
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"deleted": True})

    with pytest.raises(PartialDeleteError) as excinfo:
        _store(handler).delete(["rec1", "rec2", "rec3"])

    assert excinfo.value.deleted == {"rec1"}


def test_fallback_delete_wraps_rejected_record() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get_list("records[]"):
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        if request.url.path.endswith("/rec2"):
            return httpx.Response(403, json={"error": "INVALID_PERMISSIONS"})
        return httpx.Response(200, json={"deleted": True})

    with pytest.raises(PartialDeleteError) as excinfo:
        _store(handler).delete(["rec1", "rec2", "rec3"])

    assert excinfo.value.deleted == {"rec1"}
    assert isinstance(excinfo.value.__cause__, StoreError)


def test_delete_rejects_oversized_batch() -> None:
    store = _store(lambda request: httpx.Response(200, json={"records": []}))

    with pytest.raises(ValueError, match="at most 10"):
        store.delete([f"rec{index}" for index in range(11)])
