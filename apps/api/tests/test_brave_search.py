"""Tests for the Brave search service."""

from __future__ import annotations

import httpx
import pytest

from apirelay.core.config import Settings
from apirelay.core.exceptions import UpstreamError, ValidationError
from apirelay.services.provider_registry import ProviderRegistry, ProviderSettings
from apirelay.services.search import BraveSearchService, SearchQuery
from apirelay.storage.memory import MemoryStorage


BRAVE_PAYLOAD = {
    "web": {
        "results": [
            {"title": "FastAPI", "url": "https://fastapi.tiangolo.com", "description": "Web framework"},
            {"title": "Starlette", "url": "https://www.starlette.io", "description": "ASGI toolkit"},
        ]
    }
}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def registry(settings: Settings) -> ProviderRegistry:
    return ProviderRegistry(MemoryStorage(), settings)


def _service(registry: ProviderRegistry, settings: Settings, handler) -> BraveSearchService:
    return BraveSearchService(registry, settings, transport=httpx.MockTransport(handler))


# ============================================================================
# Query validation
# ============================================================================


class TestSearchQuery:
    def test_defaults(self) -> None:
        query = SearchQuery(q="  python  ")

        assert query.q == "python"
        assert query.count == 10
        assert query.offset == 0
        assert query.safesearch == "moderate"

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"q": ""}, "q"),
            ({"q": "x", "count": 0}, "Count"),
            ({"q": "x", "count": 101}, "Count"),
            ({"q": "x", "offset": -1}, "Offset"),
            ({"q": "x", "safesearch": "extreme"}, "Safesearch"),
        ],
    )
    def test_invalid(self, kwargs: dict, message: str) -> None:
        with pytest.raises(ValidationError, match=message):
            SearchQuery(**kwargs)


# ============================================================================
# Search
# ============================================================================


class TestBraveSearch:
    @pytest.mark.asyncio
    async def test_unconfigured_returns_mock(self, registry: ProviderRegistry, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("upstream must not be called")

        service = _service(registry, settings, handler)

        response = await service.search(SearchQuery(q="fastapi", count=3, offset=2))

        assert service.is_configured() is False
        assert response.mock is True
        assert response.result_count == 3
        assert response.results[0].title == "fastapi - result 3"

    @pytest.mark.asyncio
    async def test_forwards_request(self, registry: ProviderRegistry, settings: Settings) -> None:
        registry.initialize_or_update(
            "brave", ProviderSettings(api_key="brave-token", base_url="https://brave.test/v1/")
        )
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=BRAVE_PAYLOAD)

        service = _service(registry, settings, handler)

        response = await service.search(SearchQuery(q="fastapi", count=2, safesearch="strict"))

        assert response.mock is False
        assert [r.title for r in response.results] == ["FastAPI", "Starlette"]
        (request,) = seen
        assert request.url.host == "brave.test"
        assert request.url.path == "/v1/search"
        assert request.url.params["q"] == "fastapi"
        assert request.url.params["count"] == "2"
        assert request.url.params["safesearch"] == "strict"
        assert request.headers["X-Subscription-Token"] == "brave-token"

    @pytest.mark.asyncio
    async def test_missing_web_section(self, registry: ProviderRegistry, settings: Settings) -> None:
        registry.initialize_or_update("brave", ProviderSettings(api_key="t"))
        service = _service(registry, settings, lambda request: httpx.Response(200, json={}))

        response = await service.search(SearchQuery(q="nothing"))

        assert response.results == []
        assert response.mock is False

    @pytest.mark.asyncio
    async def test_error_status_raises(self, registry: ProviderRegistry, settings: Settings) -> None:
        registry.initialize_or_update("brave", ProviderSettings(api_key="t"))
        service = _service(registry, settings, lambda request: httpx.Response(429, text="slow down"))

        with pytest.raises(UpstreamError) as exc_info:
            await service.search(SearchQuery(q="x"))

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "brave"

    @pytest.mark.asyncio
    async def test_timeout_raises(self, registry: ProviderRegistry, settings: Settings) -> None:
        registry.initialize_or_update("brave", ProviderSettings(api_key="t", timeout=50))

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        service = _service(registry, settings, handler)

        with pytest.raises(UpstreamError, match="timeout"):
            await service.search(SearchQuery(q="x"))

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self, registry: ProviderRegistry, settings: Settings) -> None:
        registry.initialize_or_update("brave", ProviderSettings(api_key="t"))
        service = _service(
            registry, settings, lambda request: httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"})
        )

        with pytest.raises(UpstreamError, match="Malformed"):
            await service.search(SearchQuery(q="x"))


def test_mock_results_are_deterministic(registry: ProviderRegistry, settings: Settings) -> None:
    service = BraveSearchService(registry, settings)
    query = SearchQuery(q="a b", count=2)

    first = service.mock_results(query)
    second = service.mock_results(query)

    assert first == second
    assert "a+b" in first.results[0].url
    assert [r.title for r in first.results] == ["a b - result 1", "a b - result 2"]
