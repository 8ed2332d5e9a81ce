"""Tests for the async HTTP client.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from dashboard.api.client import CrawlerClient
from dashboard.config import Settings
from dashboard.errors import MutationRejected, RecordNotFound, TransientFetchError
from dashboard.models import RecordStatus

BASE = "http://crawler.test"


def _payload(record_id: str, status: str = "done", **kwargs) -> dict:
    return {"id": record_id, "url": f"https://{record_id}.com", "status": status, **kwargs}


@pytest.fixture()
async def client():
    c = CrawlerClient(Settings(api_base_url=BASE))
    yield c
    await c.aclose()


class TestListUrls:
    @respx.mock
    async def test_parses_records(self, client) -> None:
        respx.get(f"{BASE}/urls").mock(return_value=httpx.Response(
            200, json=[_payload("a", title=""), _payload("b", "running")]
        ))
        records = await client.list_urls()
        assert [r.id for r in records] == ["a", "b"]
        assert records[0].title is None
        assert records[1].status is RecordStatus.RUNNING

    @respx.mock
    async def test_null_body_is_empty_collection(self, client) -> None:
        respx.get(f"{BASE}/urls").mock(return_value=httpx.Response(200, content=b"null"))
        assert await client.list_urls() == []

    @respx.mock
    async def test_server_error_is_transient(self, client) -> None:
        respx.get(f"{BASE}/urls").mock(return_value=httpx.Response(503))
        with pytest.raises(TransientFetchError):
            await client.list_urls()

    @respx.mock
    async def test_connection_error_is_transient(self, client) -> None:
        respx.get(f"{BASE}/urls").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(TransientFetchError):
            await client.list_urls()

    @respx.mock
    async def test_timeout_is_transient(self, client) -> None:
        respx.get(f"{BASE}/urls").mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(TransientFetchError):
            await client.list_urls()

    @respx.mock
    async def test_malformed_records_are_transient(self, client) -> None:
        respx.get(f"{BASE}/urls").mock(return_value=httpx.Response(200, json=[{"id": "a"}]))
        with pytest.raises(TransientFetchError):
            await client.list_urls()


class TestGetUrl:
    @respx.mock
    async def test_returns_record(self, client) -> None:
        respx.get(f"{BASE}/urls/a").mock(return_value=httpx.Response(
            200, json=_payload("a", broken_links=[{"url": "https://a.com/x", "status": 500}])
        ))
        record = await client.get_url("a")
        assert record.broken_links[0].status == 500

    @respx.mock
    async def test_404_is_not_found(self, client) -> None:
        respx.get(f"{BASE}/urls/zz").mock(return_value=httpx.Response(404, json={"error": "not found"}))
        with pytest.raises(RecordNotFound):
            await client.get_url("zz")


class TestMutations:
    @respx.mock
    async def test_create_posts_url(self, client) -> None:
        route = respx.post(f"{BASE}/urls").mock(
            return_value=httpx.Response(202, json=_payload("new", "queued"))
        )
        record = await client.create_url("https://new.com")
        assert record.id == "new"
        assert json.loads(route.calls.last.request.content) == {"url": "https://new.com"}

    @respx.mock
    async def test_create_rejection_carries_detail(self, client) -> None:
        respx.post(f"{BASE}/urls").mock(return_value=httpx.Response(400, json={"error": "invalid input"}))
        with pytest.raises(MutationRejected) as info:
            await client.create_url("nope")
        assert info.value.status_code == 400
        assert info.value.detail == "invalid input"
        assert info.value.action == "create"

    @respx.mock
    async def test_reanalyze(self, client) -> None:
        respx.post(f"{BASE}/urls/a/reanalyze").mock(
            return_value=httpx.Response(200, json=_payload("a", "queued"))
        )
        record = await client.reanalyze_url("a")
        assert record.status is RecordStatus.QUEUED

    @respx.mock
    async def test_stop_with_record_body(self, client) -> None:
        respx.post(f"{BASE}/urls/a/stop").mock(
            return_value=httpx.Response(200, json=_payload("a", "stopped"))
        )
        record = await client.stop_url("a")
        assert record is not None and record.status is RecordStatus.STOPPED

    @respx.mock
    async def test_stop_with_bare_acknowledgement(self, client) -> None:
        respx.post(f"{BASE}/urls/a/stop").mock(
            return_value=httpx.Response(200, json={"status": "stopped"})
        )
        assert await client.stop_url("a") is None

    @respx.mock
    async def test_stop_not_running_is_rejected(self, client) -> None:
        respx.post(f"{BASE}/urls/a/stop").mock(
            return_value=httpx.Response(400, json={"error": "not running"})
        )
        with pytest.raises(MutationRejected):
            await client.stop_url("a")

    @respx.mock
    async def test_delete_no_content(self, client) -> None:
        route = respx.delete(f"{BASE}/urls/a").mock(return_value=httpx.Response(204))
        await client.delete_url("a")
        assert route.called

    @respx.mock
    async def test_delete_transport_error_is_rejection(self, client) -> None:
        respx.delete(f"{BASE}/urls/a").mock(side_effect=httpx.ConnectError("down"))
        with pytest.raises(MutationRejected) as info:
            await client.delete_url("a")
        assert info.value.status_code is None


class TestHeaders:
    @respx.mock
    async def test_shared_secret_header_attached(self) -> None:
        route = respx.get(f"{BASE}/urls").mock(return_value=httpx.Response(200, json=[]))
        async with CrawlerClient(Settings(api_base_url=BASE, api_key="s3cret")) as c:
            await c.list_urls()
        assert route.calls.last.request.headers["X-API-Key"] == "s3cret"

    @respx.mock
    async def test_no_header_without_key(self) -> None:
        route = respx.get(f"{BASE}/urls").mock(return_value=httpx.Response(200, json=[]))
        async with CrawlerClient(Settings(api_base_url=BASE, api_key=None)) as c:
            await c.list_urls()
        assert "X-API-Key" not in route.calls.last.request.headers
