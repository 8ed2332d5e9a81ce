"""Bulk delete / reanalyze over the current selection.

There is no batch endpoint, so a bulk delete is one DELETE per id, issued
strictly one after another with a short pause between calls.  A failed item
is logged and skipped; the next poll shows which rows really went away.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from dashboard.errors import DashboardError, EmptySelection, PartialBulkFailure
from dashboard.gateway import MutationGateway
from dashboard.selection import SelectionTracker

logger = logging.getLogger(__name__)

# Receives the number of selected rows; returns whether to go ahead.
ConfirmCallback = Callable[[int], bool]


@dataclass
class BulkResult:
    """Outcome of one bulk delete, per item."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        if self.failed:
            raise PartialBulkFailure(self.failed)


class BulkOrchestrator:
    def __init__(
        self,
        gateway: MutationGateway,
        selection: SelectionTracker,
        delay: float = 0.05,
    ) -> None:
        self._gateway = gateway
        self._selection = selection
        self.delay = delay

    def _snapshot(self, confirm: ConfirmCallback) -> Optional[list[str]]:
        if not len(self._selection):
            raise EmptySelection()
        ids = list(self._selection.selected_ids())
        if not confirm(len(ids)):
            return None
        return ids

    async def bulk_delete(self, confirm: ConfirmCallback) -> Optional[BulkResult]:
        """Delete every selected record, one call at a time.

        Returns ``None`` when the user declines the confirmation; otherwise a
        :class:`BulkResult`.  The selection is cleared either way once the
        sequence has run.

        Raises:
            EmptySelection: If nothing is selected.  No calls are made.
        """
        ids = self._snapshot(confirm)
        if ids is None:
            return None

        result = BulkResult()
        for position, record_id in enumerate(ids):
            if position:
                await asyncio.sleep(self.delay)
            try:
                await self._gateway.delete(record_id)
            except DashboardError as exc:
                logger.warning("Failed to delete id=%s: %s", record_id, exc)
                result.failed[record_id] = exc
            else:
                result.succeeded.append(record_id)

        self._selection.clear()
        if result.failed:
            logger.warning(
                "Bulk delete finished with %d of %d failed", len(result.failed), len(ids)
            )
        return result

    def bulk_reanalyze(self, confirm: ConfirmCallback) -> Optional[list[asyncio.Task]]:
        """Fire one start call per selected record without waiting for any.

        The selection is cleared as soon as the calls are dispatched.  The
        returned tasks may be awaited by callers that care about the outcome.

        Raises:
            EmptySelection: If nothing is selected.  No calls are made.
        """
        ids = self._snapshot(confirm)
        if ids is None:
            return None

        tasks = []
        for record_id in ids:
            task = asyncio.create_task(self._gateway.start(record_id), name=f"reanalyze-{record_id}")
            task.add_done_callback(_log_failure)
            tasks.append(task)
        self._selection.clear()
        return tasks


def _log_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Reanalyze task %s failed: %s", task.get_name(), exc)
