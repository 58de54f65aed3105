"""Abstract storage interface implemented by every backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from apirelay.services.models import (
    ApiKeyRecord,
    CallLogEntry,
    ProviderConfigRecord,
    UsageRecord,
)


class Storage(ABC):
    """
    Persistence contract for the relay services.

    Implementations must make every single-entity write atomic; in particular
    ``increment_usage`` must never lose an update when called concurrently for
    the same (key, provider) pair. Returned records are copies, mutating them
    has no effect on stored state.
    """

    # ---- API keys -------------------------------------------------------

    @abstractmethod
    def insert_key(self, record: ApiKeyRecord) -> ApiKeyRecord:
        """Persist a new key. Raises ConflictError if the id or secret already exists."""

    @abstractmethod
    def get_key(self, key_id: str) -> ApiKeyRecord | None:
        """Fetch a key by id regardless of its active flag."""

    @abstractmethod
    def get_key_by_secret(self, secret: str) -> ApiKeyRecord | None:
        """Fetch a key by its secret regardless of its active flag."""

    @abstractmethod
    def list_keys(self, active_only: bool = True) -> list[ApiKeyRecord]:
        """Return keys in creation order."""

    @abstractmethod
    def deactivate_key(self, key_id: str) -> bool:
        """Set ``is_active`` to False. Returns False if the id is unknown."""

    @abstractmethod
    def touch_key(self, secret: str, when: datetime) -> bool:
        """Set ``last_used_at`` on the active key owning ``secret``."""

    @abstractmethod
    def deactivate_expired_keys(self, now: datetime) -> int:
        """Deactivate active keys whose expiry is before ``now``."""

    # ---- Provider configs -----------------------------------------------

    @abstractmethod
    def insert_provider(self, record: ProviderConfigRecord) -> ProviderConfigRecord:
        """Persist a new provider config. Raises ConflictError if the name exists."""

    @abstractmethod
    def update_provider(self, record: ProviderConfigRecord) -> ProviderConfigRecord:
        """Replace an existing provider config. Raises NotFoundError if missing."""

    @abstractmethod
    def get_provider(self, name: str) -> ProviderConfigRecord | None:
        ...

    @abstractmethod
    def list_providers(self) -> list[ProviderConfigRecord]:
        """Return provider configs ordered by name."""

    @abstractmethod
    def delete_provider(self, name: str) -> bool:
        ...

    # ---- Usage counters -------------------------------------------------

    @abstractmethod
    def increment_usage(
        self,
        api_key_id: str,
        provider: str,
        success: bool,
        latency_ms: int,
        when: datetime,
    ) -> UsageRecord:
        """Create or bump the counters for the pair atomically and return the new state."""

    @abstractmethod
    def list_usage(self, api_key_id: str | None = None) -> list[UsageRecord]:
        """Return usage records, newest ``last_used_at`` first."""

    # ---- Call log -------------------------------------------------------

    @abstractmethod
    def add_call(self, entry: CallLogEntry) -> CallLogEntry:
        ...

    @abstractmethod
    def list_calls(self, api_key_id: str | None = None, limit: int = 100) -> list[CallLogEntry]:
        """Return call log entries, newest first."""

    @abstractmethod
    def delete_calls_before(self, cutoff: datetime) -> int:
        ...

    def close(self) -> None:
        """Release backend resources. Default is a no-op."""
