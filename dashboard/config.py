"""Centralised settings for the crawl dashboard client.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Crawl backend
    # ------------------------------------------------------------------
    api_base_url: str = field(
        default_factory=lambda: os.environ.get("CRAWLER_API_URL", "http://localhost:8080")
    )
    api_key: str | None = field(
        default_factory=lambda: os.environ.get("CRAWLER_API_KEY") or None
    )
    api_key_header: str = field(
        default_factory=lambda: os.environ.get("CRAWLER_API_KEY_HEADER", "X-API-Key")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "10.0"))
    )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("POLL_INTERVAL", "2.0"))
    )

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------
    bulk_delete_delay: float = field(
        default_factory=lambda: float(os.environ.get("BULK_DELETE_DELAY", "0.05"))
    )

    # ------------------------------------------------------------------
    # Table view
    # ------------------------------------------------------------------
    rows_per_page: int = field(
        default_factory=lambda: max(1, int(os.environ.get("ROWS_PER_PAGE", "5")))
    )

    @property
    def auth_headers(self) -> dict[str, str]:
        """Shared-secret header attached to every request, if configured."""
        if not self.api_key:
            return {}
        return {self.api_key_header: self.api_key}


# Module-level singleton, import this everywhere:
#   from dashboard.config import settings
settings = Settings()
