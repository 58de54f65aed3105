"""Tests for the AuthorizationGate."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest

from apirelay.core.config import Settings
from apirelay.core.exceptions import AuthenticationError, AuthorizationError
from apirelay.services.authorization import AuthContext, AuthorizationGate
from apirelay.services.key_store import KeyStore
from apirelay.services.models import utc_now
from apirelay.storage.memory import MemoryStorage


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def key_store(storage: MemoryStorage) -> KeyStore:
    return KeyStore(storage, Settings(_env_file=None))


@pytest.fixture
def gate(key_store: KeyStore) -> AuthorizationGate:
    return AuthorizationGate(key_store)


def _bearer(secret: str) -> str:
    return f"Bearer {secret}"


class TestAuthenticate:
    def test_valid_key(self, gate: AuthorizationGate, key_store: KeyStore) -> None:
        key = key_store.create("t1", ["brave", "openai"])

        context = gate.authenticate(_bearer(key.key))

        assert context.key_id == key.id
        assert context.key_name == "t1"
        assert context.providers == ("brave", "openai")
        assert context.key_prefix == key.key[:12]

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Bearer sk_wrong"])
    def test_malformed_header_is_authentication_error(self, gate: AuthorizationGate, header) -> None:
        with pytest.raises(AuthenticationError):
            gate.authenticate(header)

    def test_unknown_key(self, gate: AuthorizationGate) -> None:
        with pytest.raises(AuthorizationError, match="Invalid or inactive API key"):
            gate.authenticate(_bearer("ar_0000000000000000000000000000"))

    def test_deleted_key(self, gate: AuthorizationGate, key_store: KeyStore) -> None:
        key = key_store.create("t1", ["brave"])
        key_store.delete(key.id)

        with pytest.raises(AuthorizationError, match="Invalid or inactive API key"):
            gate.authenticate(_bearer(key.key))

    def test_expired_key(self, gate: AuthorizationGate, key_store: KeyStore, storage: MemoryStorage) -> None:
        key = key_store.create("t1", ["brave"])
        storage._keys[key.id].expires_at = utc_now() - timedelta(minutes=1)

        with pytest.raises(AuthorizationError, match="expired"):
            gate.authenticate(_bearer(key.key))


class TestRequireProvider:
    def test_granted(self) -> None:
        context = AuthContext(key_id="1", key_name="t1", providers=("brave",), secret="ar_x")

        assert AuthorizationGate.require_provider(context, "BRAVE") is context

    def test_not_granted(self) -> None:
        context = AuthContext(key_id="1", key_name="t1", providers=("brave",), secret="ar_x")

        with pytest.raises(AuthorizationError) as exc_info:
            AuthorizationGate.require_provider(context, "openai")

        assert exc_info.value.provider == "openai"


class TestAuthorize:
    def test_anonymous_allowed(self, gate: AuthorizationGate) -> None:
        assert gate.authorize(None, "brave", allow_anonymous=True) is None

    def test_anonymous_rejected_by_default(self, gate: AuthorizationGate) -> None:
        with pytest.raises(AuthenticationError):
            gate.authorize(None, "brave")

    def test_malformed_header_not_treated_as_anonymous(self, gate: AuthorizationGate) -> None:
        with pytest.raises(AuthenticationError):
            gate.authorize("Basic abc", "brave", allow_anonymous=True)

    def test_success_stamps_last_used(self, gate: AuthorizationGate, key_store: KeyStore) -> None:
        key = key_store.create("t1", ["brave"])

        context = gate.authorize(_bearer(key.key), "brave")

        assert context is not None
        assert context.key_id == key.id
        assert key_store.get(key.id).last_used_at is not None

    def test_provider_not_granted(self, gate: AuthorizationGate, key_store: KeyStore) -> None:
        key = key_store.create("t1", ["brave"])

        with pytest.raises(AuthorizationError, match="Provider openai not authorized"):
            gate.authorize(_bearer(key.key), "openai")

        assert key_store.get(key.id).last_used_at is None

    def test_deleted_key_denied(self, gate: AuthorizationGate, key_store: KeyStore) -> None:
        key = key_store.create("t1", ["brave"])
        key_store.delete(key.id)

        with pytest.raises(AuthorizationError):
            gate.authorize(_bearer(key.key), "brave", allow_anonymous=True)

    def test_expired_key_reports_expiry(
        self, gate: AuthorizationGate, key_store: KeyStore, storage: MemoryStorage
    ) -> None:
        key = key_store.create("t1", ["brave"])
        storage._keys[key.id].expires_at = utc_now() - timedelta(minutes=1)

        with pytest.raises(AuthorizationError, match="API key has expired"):
            gate.authorize(_bearer(key.key), "brave")

    def test_single_lookup_per_request(
        self, gate: AuthorizationGate, key_store: KeyStore, storage: MemoryStorage
    ) -> None:
        key = key_store.create("t1", ["brave"])

        with patch.object(storage, "get_key_by_secret", wraps=storage.get_key_by_secret) as lookup:
            gate.authorize(_bearer(key.key), "brave")

        assert lookup.call_count == 1
