"""Cross-page row selection.

Selection is a set of record ids, kept apart from the rendered slice so it
survives paging, sorting, filtering and background refreshes.  Page-scoped
operations take the ids of the page currently on screen.
"""

from __future__ import annotations

from typing import Iterable, Sequence


class SelectionTracker:
    """Insertion-ordered set of selected record ids."""

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: dict[str, None] = dict.fromkeys(ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def is_selected(self, record_id: str) -> bool:
        return record_id in self._ids

    def selected_ids(self) -> tuple[str, ...]:
        """Every selected id across all pages, in the order they were picked."""
        return tuple(self._ids)

    def toggle(self, record_id: str) -> bool:
        """Flip membership of *record_id*; returns the new state."""
        if record_id in self._ids:
            del self._ids[record_id]
            return False
        self._ids[record_id] = None
        return True

    def all_selected_on_page(self, page_ids: Sequence[str]) -> bool:
        """``True`` iff the page has rows and all of them are selected."""
        return bool(page_ids) and all(i in self._ids for i in page_ids)

    def toggle_all_on_page(self, page_ids: Sequence[str]) -> None:
        """Header checkbox: unselect the page if fully selected, else select it."""
        if self.all_selected_on_page(page_ids):
            for record_id in page_ids:
                self._ids.pop(record_id, None)
        else:
            for record_id in page_ids:
                self._ids.setdefault(record_id, None)

    def discard(self, ids: Iterable[str]) -> None:
        for record_id in ids:
            self._ids.pop(record_id, None)

    def clear(self) -> None:
        self._ids.clear()
