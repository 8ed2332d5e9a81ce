"""Data models for crawl records as served by ``GET /urls``.

Records are parsed with pydantic and frozen: every write to the local store
replaces a whole Record, never a field of one.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class RecordStatus(str, Enum):
    """Analysis status of a record. Server-authoritative."""

    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    STOPPED = "stopped"


TERMINAL_STATUSES = frozenset(
    {RecordStatus.DONE, RecordStatus.ERROR, RecordStatus.STOPPED}
)

# Columns the results table can be sorted by, in display order.
SORTABLE_FIELDS: tuple[str, ...] = (
    "url",
    "title",
    "html_version",
    "internal_links",
    "external_links",
    "accessible_links",
    "has_login_form",
    "status",
)


class BrokenLink(BaseModel):
    """A link found on the page that answered with an HTTP error."""

    model_config = ConfigDict(frozen=True)

    url: str
    status: int


class Record(BaseModel):
    """One tracked crawl target and its latest known analysis result."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    url: str
    status: RecordStatus
    title: Optional[str] = None
    html_version: Optional[str] = None
    internal_links: int = Field(default=0, ge=0)
    external_links: int = Field(default=0, ge=0)
    accessible_links: int = Field(default=0, ge=0)
    has_login_form: bool = False
    headings: Dict[str, int] = Field(default_factory=dict)
    broken_links: List[BrokenLink] = Field(default_factory=list)

    @field_validator("title", "html_version", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # The backend sends "" until analysis has filled these in.
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("headings", "broken_links", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "headings" else []
        return value

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        """``True`` once the backend has stopped working on this record."""
        return self.status in TERMINAL_STATUSES

    @property
    def can_start(self) -> bool:
        """Whether (re)analysis may be requested for this record."""
        return self.status in TERMINAL_STATUSES

    @property
    def can_stop(self) -> bool:
        """Whether an in-flight analysis may be cancelled."""
        return self.status == RecordStatus.RUNNING

    def sort_value(self, key: str) -> Any:
        """Return the raw value of a sortable column."""
        if key not in SORTABLE_FIELDS:
            raise ValueError(f"Unknown sort key {key!r}. Use one of: {', '.join(SORTABLE_FIELDS)}")
        value = getattr(self, key)
        if isinstance(value, RecordStatus):
            return value.value
        return value
