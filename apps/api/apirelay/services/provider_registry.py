"""Provider configuration registry."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace

from apirelay.core.config import Settings, get_settings
from apirelay.core.exceptions import ConflictError, NotFoundError, ValidationError
from apirelay.services.models import ProviderConfigRecord, utc_now
from apirelay.storage.base import Storage

logger = logging.getLogger(__name__)


@dataclass
class ProviderSettings:
    """Fields accepted by a configuration write. ``None`` means "leave as is"."""

    api_key: str | None = None
    base_url: str | None = None
    rate_limit: int | None = None
    timeout: int | None = None


class ProviderRegistry:
    """
    Stores at most one configuration per whitelisted provider.

    Names are case-insensitive everywhere. Writes are upserts: the first write
    creates the config with defaults for missing fields, later writes merge the
    supplied fields over the stored ones.
    """

    def __init__(self, storage: Storage, settings: Settings | None = None) -> None:
        self._storage = storage
        self.settings = settings or get_settings()
        self._write_lock = threading.Lock()

    def normalize(self, name: str) -> str:
        """Lowercase ``name`` and ensure it is whitelisted."""
        normalized = (name or "").strip().lower()
        if normalized not in self.settings.provider_whitelist:
            raise ValidationError(
                f"Invalid provider: {name}",
                {"allowed": list(self.settings.provider_whitelist)},
            )
        return normalized

    def initialize_or_update(
        self, name: str, settings: ProviderSettings | None = None
    ) -> ProviderConfigRecord:
        """Create the provider config or merge ``settings`` into the existing one."""
        normalized = self.normalize(name)
        update = settings or ProviderSettings()
        _validate_tunables(update)

        with self._write_lock:
            existing = self._storage.get_provider(normalized)
            if existing is None:
                try:
                    return self._initialize(normalized, update)
                except ConflictError:
                    # created by a writer outside this registry, fall through to merge
                    existing = self._storage.get_provider(normalized)
                    if existing is None:
                        raise

            merged = replace(
                existing,
                api_key=update.api_key if update.api_key is not None else existing.api_key,
                base_url=update.base_url if update.base_url is not None else existing.base_url,
                rate_limit=update.rate_limit if update.rate_limit is not None else existing.rate_limit,
                timeout=update.timeout if update.timeout is not None else existing.timeout,
                last_checked=utc_now(),
            )
            stored = self._storage.update_provider(merged)

        logger.info(
            "[ProviderRegistry] Updated provider %s (configured=%s)", normalized, stored.is_configured
        )
        return stored

    def _initialize(self, name: str, settings: ProviderSettings) -> ProviderConfigRecord:
        record = ProviderConfigRecord(
            name=name,
            api_key=settings.api_key,
            base_url=settings.base_url,
            rate_limit=settings.rate_limit or self.settings.provider_default_rate_limit,
            timeout=settings.timeout or self.settings.provider_default_timeout_ms,
        )
        stored = self._storage.insert_provider(record)
        logger.info(
            "[ProviderRegistry] Initialized provider %s (configured=%s)", name, stored.is_configured
        )
        return stored

    def get(self, name: str) -> ProviderConfigRecord:
        """Return the config for ``name``. Raises NotFoundError."""
        normalized = (name or "").strip().lower()
        record = self._storage.get_provider(normalized)
        if record is None:
            raise NotFoundError("Provider", normalized or name)
        return record

    def find(self, name: str) -> ProviderConfigRecord | None:
        """Like ``get`` but returns None when nothing is configured."""
        return self._storage.get_provider((name or "").strip().lower())

    def list(self) -> list[ProviderConfigRecord]:
        """All configs ordered by name."""
        return self._storage.list_providers()

    def check_health(self, name: str) -> bool:
        """
        Report whether a usable credential is stored for ``name``.

        Always refreshes ``last_checked``, also when the answer is False.
        Raises NotFoundError when the provider was never configured.
        """
        normalized = (name or "").strip().lower()
        with self._write_lock:
            record = self._storage.get_provider(normalized)
            if record is None:
                raise NotFoundError("Provider", normalized or name)
            checked = self._storage.update_provider(replace(record, last_checked=utc_now()))

        if not checked.is_configured:
            logger.warning("[ProviderRegistry] Provider %s has no credential configured", normalized)
        return checked.is_configured

    def delete(self, name: str) -> bool:
        normalized = (name or "").strip().lower()
        with self._write_lock:
            deleted = self._storage.delete_provider(normalized)
        if deleted:
            logger.info("[ProviderRegistry] Deleted provider %s", normalized)
        return deleted


def _validate_tunables(settings: ProviderSettings) -> None:
    if settings.rate_limit is not None and settings.rate_limit <= 0:
        raise ValidationError("rateLimit must be a positive integer")
    if settings.timeout is not None and settings.timeout <= 0:
        raise ValidationError("timeout must be a positive integer")
