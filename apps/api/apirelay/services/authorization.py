"""Request-level authentication and provider scoping."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from apirelay.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from apirelay.core.security import get_api_key_prefix, parse_bearer_credential
from apirelay.services.key_store import KeyStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Identity of an authenticated caller."""

    key_id: str
    key_name: str
    providers: tuple[str, ...]
    secret: str

    @property
    def key_prefix(self) -> str:
        return get_api_key_prefix(self.secret)


class AuthorizationGate:
    """
    Turns an ``Authorization`` header into an allow/deny verdict.

    Missing or malformed headers raise AuthenticationError (401). A well-formed
    key that is unknown, inactive, expired or lacks the required provider raises
    AuthorizationError (403). The format check runs before any store lookup.
    """

    def __init__(self, key_store: KeyStore) -> None:
        self._key_store = key_store

    def authenticate(self, header: str | None) -> AuthContext:
        """Resolve the header to an active, unexpired key without any provider check."""
        secret = parse_bearer_credential(header, self._key_store.settings)
        try:
            record = self._key_store.get_by_secret(secret)
        except NotFoundError:
            logger.warning("[AuthorizationGate] Unknown or inactive key %s", get_api_key_prefix(secret))
            raise AuthorizationError("Invalid or inactive API key") from None

        if record.is_expired():
            logger.warning("[AuthorizationGate] Expired key %s", get_api_key_prefix(secret))
            raise AuthorizationError("API key has expired")

        return AuthContext(
            key_id=record.id,
            key_name=record.name,
            providers=tuple(record.providers),
            secret=secret,
        )

    @staticmethod
    def require_provider(context: AuthContext, provider: str) -> AuthContext:
        """Deny unless ``provider`` is among the providers granted to ``context``."""
        normalized = provider.lower()
        if normalized not in context.providers:
            raise AuthorizationError(
                f"Provider {normalized} not authorized for this key", provider=normalized
            )
        return context

    def authorize(
        self,
        header: str | None,
        provider: str,
        *,
        allow_anonymous: bool = False,
    ) -> AuthContext | None:
        """
        Full gate for a provider-bound request.

        Returns None for anonymous callers when ``allow_anonymous`` is set and no
        header was sent. On success the key's ``last_used_at`` is stamped.
        """
        if header is None and allow_anonymous:
            return None

        context = self.authenticate(header)
        try:
            self.require_provider(context, provider)
        except AuthorizationError:
            logger.warning(
                "[AuthorizationGate] Key %s denied for provider %s", context.key_prefix, provider
            )
            raise

        self._key_store.record_usage(context.secret)
        return context
