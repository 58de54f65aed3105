"""Brave Search proxy with an offline fallback."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote_plus

import httpx

from apirelay.core.config import Settings, get_settings
from apirelay.core.exceptions import UpstreamError
from apirelay.services.provider_registry import ProviderRegistry
from apirelay.services.search.models import SearchQuery, SearchResponse, SearchResult

logger = logging.getLogger(__name__)


class BraveSearchService:
    """
    Forwards search queries to the Brave Search API.

    The credential, base URL and timeout come from the ``brave`` provider config.
    When no credential is configured, canned results are served instead.
    """

    provider_name = "brave"

    def __init__(
        self,
        registry: ProviderRegistry,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            registry: Source of the provider configuration.
            settings: Application settings. If not provided, will load from environment.
            transport: Optional httpx transport, used by tests to stub the upstream.
        """
        self._registry = registry
        self.settings = settings or get_settings()
        self._transport = transport

    def is_configured(self) -> bool:
        config = self._registry.find(self.provider_name)
        return config is not None and config.is_configured

    async def search(self, query: SearchQuery) -> SearchResponse:
        """
        Run ``query`` against the upstream, or return mock results when unconfigured.

        Raises:
            UpstreamError: If the upstream call fails or answers with an error status.
        """
        config = self._registry.find(self.provider_name)
        if config is None or not config.is_configured:
            return self.mock_results(query)

        base_url = (config.base_url or self.settings.brave_base_url).rstrip("/")
        timeout = config.timeout / 1000.0
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": config.api_key or "",
        }
        params = {
            "q": query.q,
            "count": query.count,
            "offset": query.offset,
            "safesearch": query.safesearch,
        }

        start = time.perf_counter()
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=self._transport) as client:
            try:
                response = await client.get("/search", params=params, headers=headers)
            except httpx.TimeoutException as exc:
                raise UpstreamError(self.provider_name, f"Request timeout: {exc}") from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(self.provider_name, f"Connection failed: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamError(
                self.provider_name,
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details={"response": response.text[:500]},
            )

        try:
            payload: dict[str, Any] = response.json()
        except ValueError as exc:
            raise UpstreamError(self.provider_name, "Malformed JSON response") from exc

        results = [
            SearchResult(
                title=item.get("title", ""),
                url=item.get("url", ""),
                description=item.get("description", ""),
            )
            for item in (payload.get("web") or {}).get("results", [])
        ]
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "[BraveSearch] %d results for %r in %dms", len(results), query.q, elapsed_ms
        )
        return SearchResponse(query=query.q, results=results, execution_time_ms=elapsed_ms)

    def mock_results(self, query: SearchQuery) -> SearchResponse:
        """Deterministic placeholder results for offline use."""
        encoded = quote_plus(query.q)
        results = [
            SearchResult(
                title=f"{query.q} - result {position}",
                url=f"https://example.com/search?q={encoded}&r={position}",
                description=f"Mock result {position} for '{query.q}'.",
            )
            for position in range(query.offset + 1, query.offset + query.count + 1)
        ]
        return SearchResponse(query=query.q, results=results, execution_time_ms=0, mock=True)
