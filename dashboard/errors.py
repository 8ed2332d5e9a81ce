"""Error taxonomy for the dashboard engine.

None of these are fatal to a session: polling failures are swallowed and
retried on the next tick, everything else is reported to whoever asked for
the operation.
"""

from __future__ import annotations

from typing import Mapping, Optional


class DashboardError(Exception):
    """Base class for every error raised by the dashboard engine."""


class TransientFetchError(DashboardError):
    """Raised when fetching the record collection fails for one cycle."""


class RecordNotFound(DashboardError):
    """Raised when the backend has no record for the requested id."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' not found.")


class MutationRejected(DashboardError):
    """Raised when the backend refuses (or never answers) a mutation.

    Attributes:
        action: One of ``create``, ``start``, ``stop``, ``delete``.
        record_id: Target id, or the submitted URL for ``create``.
        status_code: HTTP status of the rejection, ``None`` on transport errors.
        detail: Error text taken from the response body when available.
    """

    def __init__(
        self,
        action: str,
        record_id: str,
        status_code: Optional[int] = None,
        detail: str = "",
    ):
        self.action = action
        self.record_id = record_id
        self.status_code = status_code
        self.detail = detail
        code = f"HTTP {status_code}" if status_code is not None else "no response"
        message = f"{action} {record_id!r} rejected ({code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class EmptySelection(DashboardError):
    """Raised when a bulk action is requested with nothing selected."""

    def __init__(self, message: str = "No URLs selected."):
        super().__init__(message)


class PartialBulkFailure(DashboardError):
    """Raised when one or more items of a bulk delete failed.

    ``failures`` maps each failed record id to the error it raised.
    """

    def __init__(self, failures: Mapping[str, Exception]):
        self.failures = dict(failures)
        ids = ", ".join(self.failures)
        super().__init__(f"{len(self.failures)} item(s) failed: {ids}")
