"""Integration-style tests for the provider proxy endpoints."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from apirelay.core.config import Settings
from apirelay.main import create_app


UPSTREAM_RESULTS = {
    "web": {
        "results": [
            {"title": "One", "url": "https://one.test", "description": "first"},
            {"title": "Two", "url": "https://two.test", "description": "second"},
        ]
    }
}


class FakeBrave:
    """Records upstream requests and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, text="upstream failure")
        return httpx.Response(200, json=UPSTREAM_RESULTS)


@pytest.fixture
def upstream() -> FakeBrave:
    return FakeBrave()


@pytest.fixture
def client(upstream: FakeBrave) -> TestClient:
    app = create_app(Settings(_env_file=None), search_transport=httpx.MockTransport(upstream))
    with TestClient(app) as test_client:
        yield test_client


def _create_key(client: TestClient, providers: list[str]) -> dict:
    return client.post("/api/keys", json={"name": "proxy", "providers": providers}).json()


def _auth(key: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {key['key']}"}


# ============================================================================
# Authorization
# ============================================================================


def test_anonymous_search_gets_mock_results(client: TestClient, upstream: FakeBrave) -> None:
    response = client.post("/api/proxy/brave/search", json={"q": "python", "count": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["mock"] is True
    assert body["resultCount"] == 3
    assert body["query"] == "python"
    assert upstream.requests == []
    assert client.get("/api/stats").json()["summary"]["totalRequests"] == 0


def test_key_without_brave_is_forbidden(client: TestClient) -> None:
    key = _create_key(client, ["openai"])

    response = client.post("/api/proxy/brave/search", json={"q": "python"}, headers=_auth(key))

    assert response.status_code == 403
    assert "brave" in response.json()["detail"]


def test_malformed_header_is_unauthorized(client: TestClient) -> None:
    response = client.post(
        "/api/proxy/brave/search", json={"q": "python"}, headers={"Authorization": "Basic abc"}
    )

    assert response.status_code == 401
    assert response.headers["X-API-Key-Status"] == "invalid_scheme"


def test_deleted_key_is_forbidden(client: TestClient) -> None:
    key = _create_key(client, ["brave"])
    client.delete(f"/api/keys/{key['id']}")

    response = client.post("/api/proxy/brave/search", json={"q": "python"}, headers=_auth(key))

    assert response.status_code == 403


@pytest.mark.parametrize(
    "payload",
    [{}, {"q": "   "}, {"q": "x", "count": 500}, {"q": "x", "offset": -2}, {"q": "x", "safesearch": "nope"}],
)
def test_invalid_query_is_bad_request(client: TestClient, payload: dict) -> None:
    response = client.post("/api/proxy/brave/search", json=payload)

    assert response.status_code == 400


# ============================================================================
# Forwarding and accounting
# ============================================================================


def test_configured_search_hits_upstream_and_records_usage(client: TestClient, upstream: FakeBrave) -> None:
    client.post("/api/config/providers/brave", json={"apiKey": "upstream-token"})
    key = _create_key(client, ["brave"])

    response = client.post("/api/proxy/brave/search", json={"q": "python", "count": 2}, headers=_auth(key))

    assert response.status_code == 200
    body = response.json()
    assert body["mock"] is False
    assert [r["title"] for r in body["results"]] == ["One", "Two"]
    assert upstream.requests[0].headers["X-Subscription-Token"] == "upstream-token"

    key_stats = client.get(f"/api/stats/keys/{key['id']}").json()
    assert key_stats["totalRequests"] == 1
    assert key_stats["totalSuccess"] == 1
    assert client.get(f"/api/keys/{key['id']}").json()["lastUsedAt"] is not None

    (log,) = client.get("/api/stats/logs", params={"keyId": key["id"]}).json()
    assert log["statusCode"] == 200
    assert log["method"] == "POST"
    assert log["endpoint"] == "/api/proxy/brave/search"


def test_get_search_uses_query_params(client: TestClient, upstream: FakeBrave) -> None:
    client.post("/api/config/providers/brave", json={"apiKey": "upstream-token"})

    response = client.get("/api/proxy/brave/search", params={"q": "rust", "count": 5, "offset": 10})

    assert response.status_code == 200
    params = upstream.requests[0].url.params
    assert params["q"] == "rust"
    assert params["count"] == "5"
    assert params["offset"] == "10"


def test_upstream_failure_falls_back_and_counts_error(client: TestClient, upstream: FakeBrave) -> None:
    client.post("/api/config/providers/brave", json={"apiKey": "upstream-token"})
    key = _create_key(client, ["brave"])
    upstream.status_code = 502

    response = client.post("/api/proxy/brave/search", json={"q": "python"}, headers=_auth(key))

    assert response.status_code == 200
    assert response.json()["mock"] is True

    key_stats = client.get(f"/api/stats/keys/{key['id']}").json()
    assert key_stats["totalRequests"] == 1
    assert key_stats["totalErrors"] == 1

    (log,) = client.get("/api/stats/logs").json()
    assert log["statusCode"] == 502
    assert "502" in log["errorMessage"]


# ============================================================================
# Status
# ============================================================================


def test_status_requires_brave_scope(client: TestClient) -> None:
    openai_key = _create_key(client, ["openai"])
    brave_key = _create_key(client, ["brave"])

    assert client.get("/api/proxy/brave/status").status_code == 401
    assert client.get("/api/proxy/brave/status", headers=_auth(openai_key)).status_code == 403

    response = client.get("/api/proxy/brave/status", headers=_auth(brave_key))
    assert response.status_code == 200
    assert response.json() == {"provider": "brave", "keyName": "proxy", "configured": False, "mock": True}
