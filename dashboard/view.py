"""View pipeline: filter → sort → paginate.

Everything here except :class:`ViewState`'s mutators is a pure function of
(records, view state).  Deriving a page never writes to the view state, so a
background refresh can shrink the data under the user without moving them
to another page.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from numbers import Number
from typing import Any, Optional, Sequence

from dashboard.models import SORTABLE_FIELDS, Record


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


DEFAULT_ROWS_PER_PAGE = 5


@dataclass
class ViewState:
    """The user's current sort/filter/page choices, independent of data."""

    search_term: str = ""
    sort_key: Optional[str] = None
    sort_direction: SortDirection = SortDirection.ASC
    current_page: int = 1
    rows_per_page: int = DEFAULT_ROWS_PER_PAGE

    def __post_init__(self) -> None:
        if self.sort_key is not None:
            _check_sort_key(self.sort_key)
        self.sort_direction = SortDirection(self.sort_direction)
        self.rows_per_page = max(1, int(self.rows_per_page))
        self.current_page = max(1, int(self.current_page))

    # ------------------------------------------------------------------
    # Changes that can reshuffle the result set go back to page 1
    # ------------------------------------------------------------------
    def set_search(self, term: str) -> None:
        self.search_term = term
        self.current_page = 1

    def sort_by(self, key: str) -> None:
        """Column-header click: same key flips direction, new key sorts ascending."""
        _check_sort_key(key)
        if self.sort_key == key:
            self.sort_direction = (
                SortDirection.DESC if self.sort_direction == SortDirection.ASC else SortDirection.ASC
            )
        else:
            self.sort_key = key
            self.sort_direction = SortDirection.ASC
        self.current_page = 1

    def set_sort(self, key: Optional[str], direction: SortDirection | str = SortDirection.ASC) -> None:
        if key is not None:
            _check_sort_key(key)
        self.sort_key = key
        self.sort_direction = SortDirection(direction)
        self.current_page = 1

    def set_rows_per_page(self, rows: int) -> None:
        self.rows_per_page = max(1, int(rows))
        self.current_page = 1

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------
    def go_to_page(self, page: int, total: int) -> None:
        self.current_page = min(max(1, page), max(1, total))

    def next_page(self, total: int) -> None:
        self.go_to_page(self.current_page + 1, total)

    def prev_page(self) -> None:
        self.current_page = max(1, self.current_page - 1)


@dataclass(frozen=True)
class PageView:
    """The exact slice to render plus the counters shown around it."""

    rows: tuple[Record, ...]
    page: int
    total_pages: int
    filtered_count: int
    total_count: int
    ids: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "ids", tuple(r.id for r in self.rows))

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def _check_sort_key(key: str) -> None:
    if key not in SORTABLE_FIELDS:
        raise ValueError(f"Unknown sort key {key!r}. Use one of: {', '.join(SORTABLE_FIELDS)}")


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _compare(a: Any, b: Any) -> int:
    if _is_number(a) and _is_number(b):
        return (a > b) - (a < b)
    sa, sb = str(a), str(b)
    return (sa > sb) - (sa < sb)


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def filter_records(records: Sequence[Record], term: str) -> list[Record]:
    """Keep records whose url or title contains *term*, case-insensitively."""
    needle = term.lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.url.lower() or (r.title is not None and needle in r.title.lower())
    ]


def sort_records(
    records: Sequence[Record],
    key: Optional[str],
    direction: SortDirection | str = SortDirection.ASC,
) -> list[Record]:
    """Stable sort on one column; ``key=None`` keeps the incoming order."""
    if key is None:
        return list(records)
    _check_sort_key(key)
    sign = -1 if SortDirection(direction) == SortDirection.DESC else 1

    def cmp(a: Record, b: Record) -> int:
        return sign * _compare(a.sort_value(key), b.sort_value(key))

    return sorted(records, key=cmp_to_key(cmp))


def total_pages(count: int, rows_per_page: int) -> int:
    """Number of pages for *count* rows; never less than 1."""
    return max(1, math.ceil(count / max(1, rows_per_page)))


def paginate(records: Sequence[Record], page: int, rows_per_page: int) -> list[Record]:
    start = (page - 1) * rows_per_page
    return list(records[start:start + rows_per_page])


def derive_page(records: Sequence[Record], state: ViewState) -> PageView:
    """Run the whole pipeline for *state* over a store snapshot."""
    filtered = filter_records(records, state.search_term)
    ordered = sort_records(filtered, state.sort_key, state.sort_direction)
    rows = paginate(ordered, state.current_page, state.rows_per_page)
    return PageView(
        rows=tuple(rows),
        page=state.current_page,
        total_pages=total_pages(len(ordered), state.rows_per_page),
        filtered_count=len(ordered),
        total_count=len(records),
    )
