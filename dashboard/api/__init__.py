"""HTTP transport for the crawl backend's ``/urls`` endpoints."""

from dashboard.api.client import CrawlerClient

__all__ = ["CrawlerClient"]
