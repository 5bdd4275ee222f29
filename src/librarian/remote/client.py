"""HTTP client for the hosted chunk index."""

from __future__ import annotations

import logging
from typing import Any, Dict, List
from urllib.parse import quote

import httpx

from librarian.config import AppConfig
from librarian.models import SearchHit

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RemoteIndexError(RuntimeError):
    """Raised when the hosted index rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def auth_headers(config: AppConfig) -> Dict[str, str]:
    """Build the authentication headers expected by the hosted index."""
    headers: Dict[str, str] = {}
    if config.api_key:
        headers["Authorization"] = config.api_key
    if config.dataset_id:
        headers["TR-Dataset"] = config.dataset_id
    return headers


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    message = f"{action} returned {response.status_code}: {response.text[:200]}"
    LOGGER.error(message)
    raise RemoteIndexError(message, status_code=response.status_code)


class RemoteIndexClient:
    """Existence-check, upload and hybrid-search calls against the hosted index."""

    def __init__(
        self,
        base_url: str,
        *,
        headers: Dict[str, str] | None = None,
        dataset_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.dataset_id = dataset_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = dict(headers or {})

    @classmethod
    def from_config(
        cls, config: AppConfig, client: httpx.AsyncClient | None = None
    ) -> "RemoteIndexClient":
        return cls(
            config.api_url,
            headers=auth_headers(config),
            dataset_id=config.dataset_id,
            client=client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(
                method, f"{self.base_url}{path}", headers=self._headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise RemoteIndexError(f"{method} {path} failed: {exc}") from exc

    async def chunk_exists(self, tracking_id: str) -> bool:
        """Return whether a chunk with ``tracking_id`` is already stored.

        Any non-success status counts as "not stored". Transport errors raise
        ``RemoteIndexError``.
        """
        response = await self._request("GET", f"/chunk/tracking_id/{quote(tracking_id, safe='')}")
        return response.is_success

    async def create_chunk(self, *, chunk_html: str, link: str, tracking_id: str) -> None:
        response = await self._request(
            "POST",
            "/chunk",
            json={"chunk_html": chunk_html, "link": link, "tracking_id": tracking_id},
        )
        _raise_for_status(response, "POST chunk")

    async def search(
        self,
        query: str,
        *,
        page_size: int = 100,
        page: int = 0,
        score_threshold: float = 0.05,
    ) -> List[SearchHit]:
        response = await self._request(
            "POST",
            "/chunk/search",
            json={
                "page_size": page_size,
                "page": page,
                "query": query,
                "score_threshold": score_threshold,
                "search_type": "hybrid",
            },
        )
        _raise_for_status(response, "Search query")
        try:
            payload = response.json()
            return [SearchHit.from_payload(item) for item in payload["score_chunks"]]
        except (ValueError, KeyError, TypeError) as exc:
            raise RemoteIndexError(f"Malformed search response: {exc}") from exc

    async def count(self) -> int:
        """Return the number of chunks stored in the configured dataset."""
        if not self.dataset_id:
            raise RemoteIndexError("No dataset configured")
        response = await self._request("GET", f"/dataset/{quote(self.dataset_id, safe='')}")
        _raise_for_status(response, "GET dataset")
        try:
            return int(response.json().get("chunk_count", 0))
        except (ValueError, AttributeError, TypeError) as exc:
            raise RemoteIndexError(f"Malformed dataset response: {exc}") from exc
