"""Tests for single-record mutations and how they land in the store."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from dashboard.errors import MutationRejected
from dashboard.gateway import MutationGateway
from dashboard.models import Record, RecordStatus
from dashboard.selection import SelectionTracker
from dashboard.store import RecordStore


def _rec(record_id: str, status: str = "done", **kwargs) -> Record:
    return Record(id=record_id, url=f"https://{record_id}.com", status=RecordStatus(status), **kwargs)


@pytest.fixture()
def parts():
    client = AsyncMock()
    store = RecordStore()
    store.reconcile([_rec("a"), _rec("b", "running")])
    selection = SelectionTracker()
    pending: list[str] = []
    gateway = MutationGateway(client, store, selection, on_pending=pending.append)
    return client, store, selection, pending, gateway


class TestCreate:
    async def test_appends_and_watches(self, parts) -> None:
        client, store, _, pending, gateway = parts
        client.create_url.return_value = _rec("n", "queued")
        record = await gateway.create("  https://n.com ")
        client.create_url.assert_awaited_once_with("https://n.com")
        assert record.id == "n"
        assert store.ids() == ("a", "b", "n")
        assert pending == ["n"]

    async def test_rejection_leaves_store_alone(self, parts) -> None:
        client, store, _, pending, gateway = parts
        client.create_url.side_effect = MutationRejected("create", "bad", 400, "invalid input")
        before = store.records()
        with pytest.raises(MutationRejected):
            await gateway.create("bad")
        assert store.records() == before
        assert pending == []

    async def test_blank_url_never_reaches_backend(self, parts) -> None:
        client, _, _, _, gateway = parts
        with pytest.raises(MutationRejected):
            await gateway.create("   ")
        client.create_url.assert_not_awaited()


class TestStartStop:
    async def test_start_replaces_record(self, parts) -> None:
        client, store, _, pending, gateway = parts
        client.reanalyze_url.return_value = _rec("a", "queued")
        await gateway.start("a")
        assert store.get("a").status is RecordStatus.QUEUED
        assert store.ids() == ("a", "b")
        assert pending == ["a"]

    async def test_stop_replaces_record(self, parts) -> None:
        client, store, _, _, gateway = parts
        client.stop_url.return_value = _rec("b", "stopped")
        await gateway.stop("b")
        assert store.get("b").status is RecordStatus.STOPPED

    async def test_stop_without_record_keeps_store(self, parts) -> None:
        client, store, _, _, gateway = parts
        client.stop_url.return_value = None
        assert await gateway.stop("b") is None
        assert store.get("b").status is RecordStatus.RUNNING

    async def test_start_rejection_keeps_record(self, parts) -> None:
        client, store, _, pending, gateway = parts
        client.reanalyze_url.side_effect = MutationRejected("start", "a", 404)
        with pytest.raises(MutationRejected):
            await gateway.start("a")
        assert store.get("a").status is RecordStatus.DONE
        assert pending == []

    async def test_start_after_delete_does_not_resurrect(self, parts) -> None:
        client, store, _, pending, gateway = parts
        client.reanalyze_url.return_value = _rec("a", "queued")
        store.remove("a")
        record = await gateway.start("a")
        assert record.status is RecordStatus.QUEUED
        assert "a" not in store
        assert pending == []

    async def test_stop_after_delete_does_not_resurrect(self, parts) -> None:
        client, store, _, _, gateway = parts
        client.stop_url.return_value = _rec("b", "stopped")
        store.remove("b")
        await gateway.stop("b")
        assert "b" not in store


class TestDelete:
    async def test_removes_from_store_and_selection(self, parts) -> None:
        _, store, selection, _, gateway = parts
        selection.toggle("a")
        selection.toggle("b")
        await gateway.delete("a")
        assert "a" not in store
        assert selection.selected_ids() == ("b",)

    async def test_failure_keeps_record_and_selection(self, parts) -> None:
        client, store, selection, _, gateway = parts
        client.delete_url.side_effect = MutationRejected("delete", "a", 500)
        selection.toggle("a")
        with pytest.raises(MutationRejected):
            await gateway.delete("a")
        assert "a" in store
        assert "a" in selection
