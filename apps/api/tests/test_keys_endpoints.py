"""Integration-style tests for the API key endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from apirelay.core.config import Settings
from apirelay.main import create_app


@pytest.fixture
def client() -> TestClient:
    with TestClient(create_app(Settings(_env_file=None))) as test_client:
        yield test_client


def _create_key(client: TestClient, name: str = "t1", providers: list[str] | None = None, **extra) -> dict:
    response = client.post("/api/keys", json={"name": name, "providers": providers or ["brave"], **extra})
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# Create
# ============================================================================


def test_create_key_returns_camel_case_record(client: TestClient) -> None:
    body = _create_key(client, providers=["brave", "openai"])

    assert body["name"] == "t1"
    assert body["key"].startswith("ar_")
    assert len(body["key"]) == 32
    assert body["providers"] == ["brave", "openai"]
    assert body["isActive"] is True
    assert body["lastUsedAt"] is None
    assert body["createdAt"]
    assert body["expiresAt"]


def test_create_key_never_expires(client: TestClient) -> None:
    body = _create_key(client, expiresIn="never")

    assert body["expiresAt"] is None


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"name": "t1", "providers": []}, "provider"),
        ({"name": "", "providers": ["brave"]}, "name"),
        ({"name": "t1", "providers": ["brave", "bing"]}, "Invalid providers: bing"),
    ],
)
def test_create_key_validation(client: TestClient, payload: dict, message: str) -> None:
    response = client.post("/api/keys", json=payload)

    assert response.status_code == 400
    assert message in response.json()["detail"]


def test_create_key_rejects_unknown_expiry(client: TestClient) -> None:
    response = client.post("/api/keys", json={"name": "t1", "providers": ["brave"], "expiresIn": "7days"})

    assert response.status_code == 422


# ============================================================================
# Read, list and delete
# ============================================================================


def test_list_keys_in_creation_order(client: TestClient) -> None:
    first = _create_key(client, "first")
    second = _create_key(client, "second")

    response = client.get("/api/keys")

    assert response.status_code == 200
    assert [k["id"] for k in response.json()] == [first["id"], second["id"]]


def test_get_key(client: TestClient) -> None:
    created = _create_key(client)

    response = client.get(f"/api/keys/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_unknown_key(client: TestClient) -> None:
    response = client.get("/api/keys/does-not-exist")

    assert response.status_code == 404
    assert response.json()["detail"] == "Key not found"


def test_delete_key_is_soft(client: TestClient) -> None:
    created = _create_key(client)

    response = client.delete(f"/api/keys/{created['id']}")

    assert response.status_code == 204
    assert client.get("/api/keys").json() == []
    fetched = client.get(f"/api/keys/{created['id']}").json()
    assert fetched["isActive"] is False


def test_delete_unknown_key(client: TestClient) -> None:
    assert client.delete("/api/keys/nope").status_code == 404


# ============================================================================
# Current key
# ============================================================================


def test_me_requires_header(client: TestClient) -> None:
    response = client.get("/api/keys/me")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.headers["X-API-Key-Status"] == "missing_header"


def test_me_with_invalid_format(client: TestClient) -> None:
    response = client.get("/api/keys/me", headers={"Authorization": "Bearer sk_live_123"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid API key format"


def test_me_returns_authenticated_key(client: TestClient) -> None:
    created = _create_key(client)

    response = client.get("/api/keys/me", headers={"Authorization": f"Bearer {created['key']}"})

    assert response.status_code == 200
    assert response.json()["id"] == created["id"]


def test_me_with_deleted_key(client: TestClient) -> None:
    created = _create_key(client)
    client.delete(f"/api/keys/{created['id']}")

    response = client.get("/api/keys/me", headers={"Authorization": f"Bearer {created['key']}"})

    assert response.status_code == 403
