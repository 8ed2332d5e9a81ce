"""Crawl dashboard engine: keeps a live, sortable, pageable view of the
crawl backend's records and applies single and bulk mutations to them.

Public API::

    from dashboard import CrawlerClient, DashboardSession
"""

from dashboard.api.client import CrawlerClient
from dashboard.bulk import BulkOrchestrator, BulkResult
from dashboard.config import Settings, settings
from dashboard.errors import (
    DashboardError,
    EmptySelection,
    MutationRejected,
    PartialBulkFailure,
    RecordNotFound,
    TransientFetchError,
)
from dashboard.gateway import MutationGateway
from dashboard.models import BrokenLink, Record, RecordStatus
from dashboard.poller import Poller, RecordWatcher
from dashboard.selection import SelectionTracker
from dashboard.session import DashboardSession
from dashboard.store import RecordStore
from dashboard.view import PageView, SortDirection, ViewState, derive_page

__all__ = [
    "BrokenLink",
    "BulkOrchestrator",
    "BulkResult",
    "CrawlerClient",
    "DashboardError",
    "DashboardSession",
    "EmptySelection",
    "MutationGateway",
    "MutationRejected",
    "PageView",
    "PartialBulkFailure",
    "Poller",
    "Record",
    "RecordNotFound",
    "RecordStatus",
    "RecordStore",
    "RecordWatcher",
    "SelectionTracker",
    "Settings",
    "SortDirection",
    "TransientFetchError",
    "ViewState",
    "derive_page",
    "settings",
]
