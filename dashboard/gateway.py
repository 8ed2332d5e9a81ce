"""Single-record mutations and how their results land in the store.

A successful response is always a whole record that replaces the stored
one (create appends it instead).  Start and stop never bring back a
row that was deleted while the request was in flight.  A failure leaves the
store exactly as it was and is raised to the caller as :class:`MutationRejected`.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from dashboard.api.client import CrawlerClient
from dashboard.errors import MutationRejected
from dashboard.models import Record
from dashboard.selection import SelectionTracker
from dashboard.store import RecordStore

logger = logging.getLogger(__name__)


class MutationGateway:
    """Issues create/start/stop/delete and folds results back into the store.

    Args:
        client: Backend transport.
        store: Record store to update on success.
        selection: Selection to prune when a record is deleted.
        on_pending: Called with a record id whose analysis was just queued,
            typically to start a convergence watcher.
        on_removed: Called with a record id right after it left the store.
    """

    def __init__(
        self,
        client: CrawlerClient,
        store: RecordStore,
        selection: SelectionTracker,
        on_pending: Optional[Callable[[str], None]] = None,
        on_removed: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._client = client
        self._store = store
        self._selection = selection
        self._on_pending = on_pending
        self._on_removed = on_removed

    async def create(self, url: str) -> Record:
        url = url.strip()
        if not url:
            raise MutationRejected("create", url, None, "URL must not be empty")
        try:
            record = await self._client.create_url(url)
        except MutationRejected as exc:
            logger.warning("Failed to add URL: %s", exc)
            raise
        self._store.upsert(record)
        self._pending(record)
        return record

    async def start(self, record_id: str) -> Record:
        try:
            record = await self._client.reanalyze_url(record_id)
        except MutationRejected as exc:
            logger.warning("Failed to start %s: %s", record_id, exc)
            raise
        if self._store.replace(record):
            self._pending(record)
        return record

    async def stop(self, record_id: str) -> Optional[Record]:
        try:
            record = await self._client.stop_url(record_id)
        except MutationRejected as exc:
            logger.warning("Failed to stop %s: %s", record_id, exc)
            raise
        if record is not None:
            self._store.replace(record)
        return record

    async def delete(self, record_id: str) -> None:
        try:
            await self._client.delete_url(record_id)
        except MutationRejected as exc:
            logger.warning("Failed to delete %s: %s", record_id, exc)
            raise
        # Store and selection change together, with no await in between.
        self._store.remove(record_id)
        self._selection.discard([record_id])
        if self._on_removed is not None:
            self._on_removed(record_id)

    async def details(self, record_id: str) -> Record:
        """Fetch one record for the details view.  Not written to the store."""
        return await self._client.get_url(record_id)

    def _pending(self, record: Record) -> None:
        if self._on_pending is not None and not record.is_terminal:
            self._on_pending(record.id)
