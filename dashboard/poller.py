"""Periodic reconciliation of the record store with the backend.

Two kinds of pollers share the store's write path:

* :class:`Poller` refreshes the whole collection on a fixed interval for as
  long as the session lives.
* :class:`RecordWatcher` follows one record after a create/start until the
  backend reports it settled, so the row converges without a push channel.

Both swallow :class:`TransientFetchError` for the failed cycle and try again
on the next tick.  Neither ever touches view state or selection directly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from dashboard.api.client import CrawlerClient
from dashboard.errors import TransientFetchError
from dashboard.models import Record
from dashboard.store import RecordStore

logger = logging.getLogger(__name__)

ReconciledCallback = Callable[[set[str]], None]


async def _cancel_all(tasks: set[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)


class Poller:
    """Fetches the full collection every *interval* seconds.

    Each tick runs as its own task, so a slow response does not delay the
    next tick.  Overlapping responses are applied in the order they finish:
    the last one to resolve wins.
    """

    def __init__(
        self,
        client: CrawlerClient,
        store: RecordStore,
        interval: float,
        on_reconciled: Optional[ReconciledCallback] = None,
    ) -> None:
        self._client = client
        self._store = store
        self.interval = interval
        self._on_reconciled = on_reconciled
        self._loop_task: Optional[asyncio.Task] = None
        self._ticks: set[asyncio.Task] = set()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        """Start polling.  The first fetch fires immediately."""
        if self.running:
            return
        self._stopped = False
        self._loop_task = asyncio.create_task(self._run(), name="poller")
        logger.info("Polling %s every %.1fs", self._client.config.api_base_url, self.interval)

    async def stop(self) -> None:
        """Cancel the loop and every in-flight fetch.

        Once this returns, no further store writes happen.
        """
        self._stopped = True
        tasks = set(self._ticks)
        if self._loop_task is not None:
            tasks.add(self._loop_task)
            self._loop_task = None
        await _cancel_all(tasks)
        self._ticks.clear()

    async def _run(self) -> None:
        while True:
            tick = asyncio.create_task(self.poll_once())
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)
            await asyncio.sleep(self.interval)

    async def poll_once(self) -> bool:
        """Fetch and reconcile once.  Returns ``True`` if the store was updated."""
        try:
            records = await self._client.list_urls()
        except TransientFetchError as exc:
            logger.debug("Poll skipped: %s", exc)
            return False
        if self._stopped:
            return False
        removed = self._store.reconcile(records)
        if self._on_reconciled is not None:
            self._on_reconciled(removed)
        return True


class RecordWatcher:
    """Polls until one record reaches a terminal status.

    The watcher only replaces a record the store still holds; it never brings
    back a row that was deleted locally.  It also gives up once
    *missing_limit* successful fetches in a row came back without the record,
    so a row the backend dropped does not keep it waiting forever.
    """

    def __init__(
        self,
        client: CrawlerClient,
        store: RecordStore,
        record_id: str,
        interval: float,
        missing_limit: int = 3,
    ) -> None:
        self._client = client
        self._store = store
        self.record_id = record_id
        self.interval = interval
        self.missing_limit = missing_limit
        self.misses = 0
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"watch-{self.record_id}")

    async def stop(self) -> None:
        self._stopped = True
        if self._task is not None:
            await _cancel_all({self._task})

    async def wait(self) -> Optional[Record]:
        """Wait for the record to settle and return its final state.

        Returns ``None`` if the watcher was stopped or the record vanished.
        """
        if self._task is None:
            self.start()
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if self._stopped:
                return None
            raise

    async def _run(self) -> Optional[Record]:
        while True:
            await asyncio.sleep(self.interval)
            record = await self.check_once()
            if self._stopped:
                return None
            if record is None:
                if self.record_id not in self._store or self.misses >= self.missing_limit:
                    logger.debug("Stopped watching %s: record is gone", self.record_id)
                    return None
                continue
            if record.is_terminal:
                logger.debug("Record %s settled as %s", self.record_id, record.status.value)
                return record

    async def check_once(self) -> Optional[Record]:
        """Fetch the collection and fold in the watched record, if present."""
        try:
            records = await self._client.list_urls()
        except TransientFetchError as exc:
            logger.debug("Watch %s skipped: %s", self.record_id, exc)
            return None
        record = next((r for r in records if r.id == self.record_id), None)
        self.misses = 0 if record is not None else self.misses + 1
        if record is None or self._stopped:
            return record
        self._store.replace(record)
        return record
