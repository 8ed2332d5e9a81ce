"""Tests for record parsing and status helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dashboard.models import BrokenLink, Record, RecordStatus


class TestRecordParsing:
    def test_defaults_before_analysis(self) -> None:
        rec = Record.model_validate({"id": "a1", "url": "https://a.com", "status": "queued"})
        assert rec.title is None
        assert rec.html_version is None
        assert rec.internal_links == 0
        assert rec.external_links == 0
        assert rec.accessible_links == 0
        assert rec.has_login_form is False
        assert rec.headings == {}
        assert rec.broken_links == []

    def test_blank_strings_become_none(self) -> None:
        rec = Record.model_validate(
            {"id": "a1", "url": "https://a.com", "status": "queued", "title": "", "html_version": " "}
        )
        assert rec.title is None
        assert rec.html_version is None

    def test_null_collections_become_empty(self) -> None:
        rec = Record.model_validate(
            {"id": "a1", "url": "u", "status": "done", "headings": None, "broken_links": None}
        )
        assert rec.headings == {}
        assert rec.broken_links == []

    def test_full_record(self) -> None:
        rec = Record.model_validate({
            "id": "a1",
            "url": "https://a.com",
            "status": "done",
            "title": "A",
            "html_version": "HTML5",
            "internal_links": 3,
            "external_links": 2,
            "accessible_links": 4,
            "has_login_form": True,
            "headings": {"h1": 1, "h2": 4},
            "broken_links": [{"url": "https://a.com/x", "status": 404}],
            "unknown_field": "ignored",
        })
        assert rec.status is RecordStatus.DONE
        assert rec.broken_links == [BrokenLink(url="https://a.com/x", status=404)]
        assert rec.headings["h2"] == 4

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Record.model_validate({"id": "a1", "url": "u", "status": "exploded"})

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Record.model_validate({"id": "a1", "url": "u", "status": "done", "internal_links": -1})

    def test_records_are_frozen(self) -> None:
        rec = Record(id="a1", url="u", status=RecordStatus.DONE)
        with pytest.raises(ValidationError):
            rec.status = RecordStatus.RUNNING  # type: ignore[misc]


class TestStatusHelpers:
    @pytest.mark.parametrize("status", ["done", "error", "stopped"])
    def test_terminal_statuses_can_start(self, status: str) -> None:
        rec = Record(id="a", url="u", status=RecordStatus(status))
        assert rec.is_terminal
        assert rec.can_start
        assert not rec.can_stop

    def test_running_can_stop(self) -> None:
        rec = Record(id="a", url="u", status=RecordStatus.RUNNING)
        assert rec.can_stop
        assert not rec.can_start
        assert not rec.is_terminal

    def test_queued_can_do_neither(self) -> None:
        rec = Record(id="a", url="u", status=RecordStatus.QUEUED)
        assert not rec.can_start
        assert not rec.can_stop

    def test_sort_value_unwraps_status(self) -> None:
        rec = Record(id="a", url="u", status=RecordStatus.DONE)
        assert rec.sort_value("status") == "done"

    def test_sort_value_rejects_unknown_key(self) -> None:
        rec = Record(id="a", url="u", status=RecordStatus.DONE)
        with pytest.raises(ValueError):
            rec.sort_value("headings")
