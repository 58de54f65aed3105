"""Helpers for issuing API key secrets and parsing bearer credentials."""

from __future__ import annotations

import secrets

from apirelay.core.config import Settings, get_settings
from apirelay.core.exceptions import AuthenticationError

BEARER_SCHEME = "Bearer"
_DISPLAY_PREFIX_LENGTH = 12


def generate_api_key(settings: Settings | None = None) -> str:
    """Generate a new secret of the form ``{prefix}{random hex}``, truncated to the configured length."""

    active_settings = settings or get_settings()
    random_part = secrets.token_hex(active_settings.key_length)
    return f"{active_settings.key_prefix}{random_part}"[: active_settings.key_length]


def get_api_key_prefix(api_key: str) -> str:
    """Return a short leading slice of the key that is safe to log or display."""

    return api_key[:_DISPLAY_PREFIX_LENGTH] if len(api_key) >= _DISPLAY_PREFIX_LENGTH else api_key


def has_api_key_format(api_key: str, settings: Settings | None = None) -> bool:
    """Check the literal prefix without touching any store."""

    prefix = (settings or get_settings()).key_prefix
    return api_key.startswith(prefix) and len(api_key) > len(prefix)


def parse_bearer_credential(header: str | None, settings: Settings | None = None) -> str:
    """
    Extract the API key from an ``Authorization: Bearer <key>`` header value.

    Raises AuthenticationError with a reason code describing why the header was rejected.
    """

    if header is None or not header.strip():
        raise AuthenticationError("Missing authorization header", AuthenticationError.MISSING_HEADER)

    scheme, _, token = header.strip().partition(" ")
    if scheme != BEARER_SCHEME:
        raise AuthenticationError("Invalid authorization scheme", AuthenticationError.INVALID_SCHEME)

    token = token.strip()
    if not token:
        raise AuthenticationError("Missing API key", AuthenticationError.MISSING_KEY)

    if not has_api_key_format(token, settings):
        raise AuthenticationError("Invalid API key format", AuthenticationError.INVALID_FORMAT)

    return token
