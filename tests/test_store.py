"""Tests for the record store and reconciliation."""

from __future__ import annotations

from dashboard.models import Record, RecordStatus
from dashboard.store import RecordStore


def _rec(record_id: str, status: str = "done", **kwargs) -> Record:
    return Record(id=record_id, url=f"https://{record_id}.com", status=RecordStatus(status), **kwargs)


class TestReconcile:
    def test_sorted_by_id(self) -> None:
        store = RecordStore()
        store.reconcile([_rec("c"), _rec("a"), _rec("b")])
        assert store.ids() == ("a", "b", "c")

    def test_same_payload_twice_is_idempotent(self) -> None:
        payload = [_rec("b"), _rec("a", status="running")]
        store = RecordStore()
        store.reconcile(payload)
        first = store.records()
        version = store.version
        store.reconcile(list(reversed(payload)))
        assert store.records() == first
        assert store.version == version

    def test_replaces_inserts_and_removes(self) -> None:
        store = RecordStore()
        store.reconcile([_rec("a", status="running"), _rec("b")])
        removed = store.reconcile([_rec("a", status="done", internal_links=4), _rec("c")])
        assert removed == {"b"}
        assert store.ids() == ("a", "c")
        assert store.get("a").status is RecordStatus.DONE
        assert store.get("a").internal_links == 4

    def test_wholesale_replacement_drops_old_fields(self) -> None:
        store = RecordStore()
        store.reconcile([_rec("a", title="Old", internal_links=7)])
        store.reconcile([_rec("a", status="queued")])
        assert store.get("a").title is None
        assert store.get("a").internal_links == 0

    def test_duplicate_ids_keep_last(self) -> None:
        store = RecordStore()
        store.reconcile([_rec("a", status="running"), _rec("a", status="done")])
        assert len(store) == 1
        assert store.get("a").status is RecordStatus.DONE


class TestSingleWrites:
    def test_upsert_appends_then_replaces_in_place(self) -> None:
        store = RecordStore()
        store.reconcile([_rec("b"), _rec("c")])
        store.upsert(_rec("a", status="queued"))
        assert store.ids() == ("b", "c", "a")
        store.upsert(_rec("b", status="running"))
        assert store.ids() == ("b", "c", "a")
        assert store.get("b").status is RecordStatus.RUNNING

    def test_replace_ignores_unknown_ids(self) -> None:
        store = RecordStore()
        assert store.replace(_rec("ghost")) is False
        assert len(store) == 0

    def test_remove(self) -> None:
        store = RecordStore()
        store.reconcile([_rec("a"), _rec("b"), _rec("c")])
        assert store.remove("b") is True
        assert store.ids() == ("a", "c")
        assert store.get("c") is not None
        assert store.remove("b") is False

    def test_version_moves_on_writes(self) -> None:
        store = RecordStore()
        v0 = store.version
        store.upsert(_rec("a"))
        store.remove("a")
        assert store.version == v0 + 2
