"""API key issuance, lookup and verification."""

from __future__ import annotations

import logging
from uuid import uuid4

from apirelay.core.config import Settings, get_settings
from apirelay.core.exceptions import ConflictError, NotFoundError, ValidationError
from apirelay.core.security import generate_api_key, get_api_key_prefix
from apirelay.services.models import ApiKeyRecord, ExpiryPolicy, utc_now
from apirelay.storage.base import Storage

logger = logging.getLogger(__name__)

_MAX_SECRET_ATTEMPTS = 5


class KeyStore:
    """
    Creates and verifies bearer keys scoped to a set of providers.

    Keys are never physically removed: ``delete`` only flips ``is_active`` so
    that ``get`` keeps returning the record while ``list`` and ``verify`` ignore it.
    """

    def __init__(self, storage: Storage, settings: Settings | None = None) -> None:
        self._storage = storage
        self.settings = settings or get_settings()

    @property
    def valid_providers(self) -> tuple[str, ...]:
        return self.settings.provider_whitelist

    def create(
        self,
        name: str,
        providers: list[str],
        expiry_policy: ExpiryPolicy | str | None = None,
    ) -> ApiKeyRecord:
        """
        Issue a new key.

        Args:
            name: Display name; must contain a non-whitespace character.
            providers: Provider identifiers the key may access. Case-insensitive,
                duplicates are collapsed and the first-seen order is kept.
            expiry_policy: ``never``, ``90days`` or ``180days``. Defaults to the
                configured policy (90 days).

        Raises:
            ValidationError: If the name is blank, no provider was given, a provider
                is not whitelisted or the expiry policy is unknown.
        """
        if not name or not name.strip():
            raise ValidationError("Key name is required")

        if not providers:
            raise ValidationError("At least one provider must be specified")

        invalid = [p for p in providers if not isinstance(p, str) or p.strip().lower() not in self.valid_providers]
        if invalid:
            raise ValidationError(
                f"Invalid providers: {', '.join(str(p) for p in invalid)}",
                {"invalid_providers": [str(p) for p in invalid]},
            )

        normalized: list[str] = []
        for provider in providers:
            value = provider.strip().lower()
            if value not in normalized:
                normalized.append(value)

        policy = self._resolve_policy(expiry_policy)
        created_at = utc_now()

        for attempt in range(1, _MAX_SECRET_ATTEMPTS + 1):
            record = ApiKeyRecord(
                id=str(uuid4()),
                name=name,
                key=generate_api_key(self.settings),
                providers=normalized,
                created_at=created_at,
                expires_at=policy.resolve(created_at),
            )
            try:
                stored = self._storage.insert_key(record)
            except ConflictError:
                # secret collision, draw again
                logger.warning("[KeyStore] Secret collision on attempt %d, regenerating", attempt)
                continue

            logger.info(
                "[KeyStore] Created key %s (%s) for providers %s, expires %s",
                stored.id,
                get_api_key_prefix(stored.key),
                ",".join(stored.providers),
                stored.expires_at.isoformat() if stored.expires_at else "never",
            )
            return stored

        raise ConflictError("Could not generate a unique API key")

    def get(self, key_id: str) -> ApiKeyRecord:
        """Return the key with this id, active or not. Raises NotFoundError."""
        record = self._storage.get_key(key_id)
        if record is None:
            raise NotFoundError("Key", key_id)
        return record

    def get_by_secret(self, secret: str) -> ApiKeyRecord:
        """Return the active key owning ``secret``. Raises NotFoundError."""
        record = self._storage.get_key_by_secret(secret) if secret else None
        if record is None or not record.is_active:
            raise NotFoundError("Key", get_api_key_prefix(secret or ""))
        return record

    def list(self) -> list[ApiKeyRecord]:
        """Active keys in creation order."""
        return self._storage.list_keys(active_only=True)

    def delete(self, key_id: str) -> bool:
        deleted = self._storage.deactivate_key(key_id)
        if deleted:
            logger.info("[KeyStore] Deactivated key %s", key_id)
        return deleted

    def record_usage(self, secret: str) -> None:
        """Stamp ``last_used_at`` on the active key owning ``secret``; never raises."""
        if not secret:
            return
        try:
            self._storage.touch_key(secret, utc_now())
        except Exception:  # usage stamping must not fail an authorized request
            logger.exception("[KeyStore] Failed to record usage for %s", get_api_key_prefix(secret))

    def verify(self, secret: str, required_provider: str) -> bool:
        """True iff the secret belongs to an active, unexpired key granting ``required_provider``."""
        if not secret or not required_provider:
            return False
        try:
            record = self._storage.get_key_by_secret(secret)
        except Exception:
            logger.exception("[KeyStore] Key lookup failed during verification")
            return False

        if record is None or not record.is_active:
            return False
        if record.is_expired():
            return False
        return record.grants(required_provider)

    def deactivate_expired(self) -> int:
        """Deactivate every active key past its expiry and return how many changed."""
        count = self._storage.deactivate_expired_keys(utc_now())
        if count:
            logger.info("[KeyStore] Deactivated %d expired keys", count)
        return count

    def _resolve_policy(self, expiry_policy: ExpiryPolicy | str | None) -> ExpiryPolicy:
        value = expiry_policy or self.settings.default_key_expiry
        try:
            return ExpiryPolicy(value)
        except ValueError as exc:
            allowed = ", ".join(policy.value for policy in ExpiryPolicy)
            raise ValidationError(f"Invalid expiry policy: {value}. Must be one of: {allowed}") from exc
