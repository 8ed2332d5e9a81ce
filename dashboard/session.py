"""One user session: the store, view state, selection and their writers.

The session wires the components together and is the only place that owns
them.  Typical use::

    async with CrawlerClient() as client, DashboardSession(client) as session:
        session.search("example")
        page = session.page()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from dashboard.api.client import CrawlerClient
from dashboard.bulk import BulkOrchestrator, BulkResult, ConfirmCallback
from dashboard.config import Settings
from dashboard.gateway import MutationGateway
from dashboard.models import Record
from dashboard.poller import Poller, RecordWatcher
from dashboard.selection import SelectionTracker
from dashboard.store import RecordStore
from dashboard.view import PageView, SortDirection, ViewState, derive_page

logger = logging.getLogger(__name__)


class DashboardSession:
    def __init__(self, client: CrawlerClient, config: Optional[Settings] = None) -> None:
        self.client = client
        self.config = config or client.config
        self.store = RecordStore()
        self.view = ViewState(rows_per_page=self.config.rows_per_page)
        self.selection = SelectionTracker()
        self.gateway = MutationGateway(
            client,
            self.store,
            self.selection,
            on_pending=self.watch,
        )
        self.bulk = BulkOrchestrator(self.gateway, self.selection, delay=self.config.bulk_delete_delay)
        self.poller = Poller(
            client,
            self.store,
            self.config.poll_interval,
            on_reconciled=self._prune_selection,
        )
        self._watchers: dict[str, RecordWatcher] = {}
        self._background: set[asyncio.Task] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def __aenter__(self) -> DashboardSession:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def start(self) -> None:
        self.poller.start()
        logger.info("Session started")

    async def close(self) -> None:
        """Stop every poller and pending task; the store is frozen afterwards."""
        if self._closed:
            return
        self._closed = True
        await self.poller.stop()
        for watcher in list(self._watchers.values()):
            await watcher.stop()
        self._watchers.clear()
        for task in self._background:
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()
        logger.info("Session closed")

    async def refresh(self) -> bool:
        """Reconcile right now instead of waiting for the next tick."""
        return await self.poller.poll_once()

    def watch(self, record_id: str) -> RecordWatcher:
        """Follow *record_id* until the backend reports it settled."""
        for done_id in [i for i, w in self._watchers.items() if w.done]:
            del self._watchers[done_id]
        watcher = self._watchers.get(record_id)
        if watcher is None:
            watcher = RecordWatcher(self.client, self.store, record_id, self.config.poll_interval)
            self._watchers[record_id] = watcher
            if not self._closed:
                watcher.start()
        return watcher

    def _prune_selection(self, removed: set[str]) -> None:
        if removed:
            self.selection.discard(removed)

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------
    def page(self) -> PageView:
        return derive_page(self.store.records(), self.view)

    def search(self, term: str) -> None:
        self.view.set_search(term)

    def sort_by(self, key: str) -> None:
        self.view.sort_by(key)

    def set_sort(self, key: Optional[str], direction: SortDirection | str = SortDirection.ASC) -> None:
        self.view.set_sort(key, direction)

    def set_rows_per_page(self, rows: int) -> None:
        self.view.set_rows_per_page(rows)

    def go_to_page(self, page: int) -> None:
        self.view.go_to_page(page, self.page().total_pages)

    def next_page(self) -> None:
        self.view.next_page(self.page().total_pages)

    def prev_page(self) -> None:
        self.view.prev_page()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def toggle(self, record_id: str) -> bool:
        return self.selection.toggle(record_id)

    def toggle_all_on_page(self) -> None:
        self.selection.toggle_all_on_page(self.page().ids)

    def all_selected_on_page(self) -> bool:
        return self.selection.all_selected_on_page(self.page().ids)

    def selected_ids(self) -> tuple[str, ...]:
        return self.selection.selected_ids()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def add(self, url: str) -> Record:
        return await self.gateway.create(url)

    async def start_analysis(self, record_id: str) -> Record:
        return await self.gateway.start(record_id)

    async def stop_analysis(self, record_id: str) -> Optional[Record]:
        return await self.gateway.stop(record_id)

    async def delete(self, record_id: str) -> None:
        await self.gateway.delete(record_id)

    async def details(self, record_id: str) -> Record:
        return await self.gateway.details(record_id)

    async def bulk_delete(self, confirm: ConfirmCallback) -> Optional[BulkResult]:
        return await self.bulk.bulk_delete(confirm)

    def bulk_reanalyze(self, confirm: ConfirmCallback) -> Optional[list[asyncio.Task]]:
        tasks = self.bulk.bulk_reanalyze(confirm)
        for task in tasks or ():
            self._background.add(task)
            task.add_done_callback(self._background.discard)
        return tasks
