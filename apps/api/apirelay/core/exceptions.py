"""Domain exceptions shared by the relay services."""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base exception for relay errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(RelayError):
    """Raised when an operation receives input it cannot accept."""


class NotFoundError(RelayError):
    """Raised when an id or name does not resolve to an entity."""

    def __init__(self, entity: str, identifier: str) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found", {"entity": entity, "id": identifier})


class ConflictError(RelayError):
    """Raised when creating an entity that already exists."""


class AuthenticationError(RelayError):
    """Raised when a credential is missing or malformed."""

    MISSING_HEADER = "missing_header"
    INVALID_SCHEME = "invalid_scheme"
    MISSING_KEY = "missing_key"
    INVALID_FORMAT = "invalid_format"

    def __init__(self, message: str, reason: str) -> None:
        self.reason = reason
        super().__init__(message, {"reason": reason})


class AuthorizationError(RelayError):
    """Raised when a credential is well-formed but not allowed to proceed."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message, {"provider": provider} if provider else None)


class UpstreamError(RelayError):
    """Raised when a provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"[{provider}] {message}", details)
