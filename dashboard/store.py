"""Local copy of the record collection, as last reconciled from the backend.

Only the pollers and the mutation gateway write here, and every write swaps
a whole :class:`Record` keyed by ``id``.  That keeps concurrent writers
commutative: applying the same server truth twice, in any order, leaves the
same record behind.
"""

from __future__ import annotations

from typing import Iterable, Optional

from dashboard.models import Record


class RecordStore:
    """Ordered, id-keyed collection of records."""

    def __init__(self) -> None:
        self._records: list[Record] = []
        self._index: dict[str, int] = {}
        self.version = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._index

    def get(self, record_id: str) -> Optional[Record]:
        pos = self._index.get(record_id)
        return None if pos is None else self._records[pos]

    def records(self) -> tuple[Record, ...]:
        """Immutable snapshot in store order."""
        return tuple(self._records)

    def ids(self) -> tuple[str, ...]:
        return tuple(r.id for r in self._records)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def reconcile(self, fetched: Iterable[Record]) -> set[str]:
        """Replace the store contents with *fetched*.

        Duplicated ids keep their last occurrence.  The result is sorted by
        ``id`` so that the backend's (unordered) map iteration never shows
        up as rows jumping around between polls.

        Returns:
            The ids that were present before and are now gone.
        """
        by_id = {record.id: record for record in fetched}
        removed = set(self._index) - set(by_id)
        new_records = sorted(by_id.values(), key=lambda r: r.id)
        if new_records != self._records:
            self._records = new_records
            self._rebuild_index()
            self.version += 1
        return removed

    def upsert(self, record: Record) -> None:
        """Replace the record with the same id, or append it when absent."""
        pos = self._index.get(record.id)
        if pos is None:
            self._index[record.id] = len(self._records)
            self._records.append(record)
        else:
            self._records[pos] = record
        self.version += 1

    def replace(self, record: Record) -> bool:
        """Replace an existing record; ignore ids the store does not hold."""
        pos = self._index.get(record.id)
        if pos is None:
            return False
        self._records[pos] = record
        self.version += 1
        return True

    def remove(self, record_id: str) -> bool:
        pos = self._index.get(record_id)
        if pos is None:
            return False
        del self._records[pos]
        self._rebuild_index()
        self.version += 1
        return True

    def _rebuild_index(self) -> None:
        self._index = {record.id: pos for pos, record in enumerate(self._records)}
