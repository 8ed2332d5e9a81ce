"""Async HTTP client for the crawl backend.

Endpoints
---------
GET    /urls                 Full record collection
GET    /urls/{id}            Single record (details view)
POST   /urls                 Submit a new crawl target
POST   /urls/{id}/reanalyze  Request (re)analysis
POST   /urls/{id}/stop       Cancel an in-flight analysis
DELETE /urls/{id}            Remove a record
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from dashboard.config import Settings, settings as default_settings
from dashboard.errors import MutationRejected, RecordNotFound, TransientFetchError
from dashboard.models import Record

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "CrawlDashboard/1.0",
}


def _error_detail(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            if body.get(key):
                return str(body[key])
    return str(body)


class CrawlerClient:
    """Thin wrapper around ``httpx.AsyncClient`` bound to one backend.

    Collection reads raise :class:`TransientFetchError`; mutations raise
    :class:`MutationRejected`.  Timeouts and connection errors are treated
    exactly like non-success responses.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_settings
        self._http = http or httpx.AsyncClient(
            base_url=self.config.api_base_url,
            headers={**_DEFAULT_HEADERS, **self.config.auth_headers},
            timeout=self.config.request_timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> CrawlerClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def list_urls(self) -> list[Record]:
        """Fetch the full record collection."""
        try:
            response = await self._http.get("/urls")
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransientFetchError(f"GET /urls failed: {exc}") from exc

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise TransientFetchError(f"GET /urls returned {type(payload).__name__}, expected a list")
        try:
            return [Record.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise TransientFetchError(f"GET /urls returned malformed records: {exc}") from exc

    async def get_url(self, record_id: str) -> Record:
        """Fetch a single record by id.

        Raises:
            RecordNotFound: If the backend answers 404.
            TransientFetchError: On any other failure.
        """
        try:
            response = await self._http.get(f"/urls/{record_id}")
        except httpx.HTTPError as exc:
            raise TransientFetchError(f"GET /urls/{record_id} failed: {exc}") from exc
        if response.status_code == 404:
            raise RecordNotFound(record_id)
        if not response.is_success:
            raise TransientFetchError(
                f"GET /urls/{record_id} failed: HTTP {response.status_code} {_error_detail(response)}"
            )
        try:
            return Record.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TransientFetchError(f"GET /urls/{record_id} returned a malformed record") from exc

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def _mutate(
        self,
        action: str,
        target: str,
        method: str,
        path: str,
        json: Any = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise MutationRejected(action, target, None, str(exc)) from exc
        if not response.is_success:
            raise MutationRejected(action, target, response.status_code, _error_detail(response))
        return response

    def _parse_record(self, action: str, target: str, response: httpx.Response) -> Record:
        try:
            return Record.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MutationRejected(
                action, target, response.status_code, "response is not a record"
            ) from exc

    async def create_url(self, url: str) -> Record:
        """Submit *url* for crawling and return the queued record."""
        response = await self._mutate("create", url, "POST", "/urls", json={"url": url})
        return self._parse_record("create", url, response)

    async def reanalyze_url(self, record_id: str) -> Record:
        """Request (re)analysis of *record_id* and return the updated record."""
        response = await self._mutate("start", record_id, "POST", f"/urls/{record_id}/reanalyze")
        return self._parse_record("start", record_id, response)

    async def stop_url(self, record_id: str) -> Optional[Record]:
        """Cancel the analysis of *record_id*.

        Returns the updated record, or ``None`` when the backend only
        acknowledges the cancellation without sending the record back.
        """
        response = await self._mutate("stop", record_id, "POST", f"/urls/{record_id}/stop")
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict) or "id" not in body:
            logger.debug("stop %s acknowledged without a record body", record_id)
            return None
        return self._parse_record("stop", record_id, response)

    async def delete_url(self, record_id: str) -> None:
        """Delete *record_id* on the backend."""
        await self._mutate("delete", record_id, "DELETE", f"/urls/{record_id}")
