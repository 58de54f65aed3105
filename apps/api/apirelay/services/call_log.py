"""Log of individual proxied calls."""

from __future__ import annotations

import logging
from datetime import timedelta

from apirelay.services.models import CallLogEntry, utc_now
from apirelay.storage.base import Storage

logger = logging.getLogger(__name__)


class CallLog:
    def __init__(self, storage: Storage, default_limit: int = 100) -> None:
        self._storage = storage
        self.default_limit = default_limit

    def log_call(
        self,
        api_key_id: str,
        provider: str,
        endpoint: str,
        method: str,
        status_code: int | None,
        latency_ms: float,
        error_message: str | None = None,
    ) -> CallLogEntry | None:
        """Append an entry. Storage failures are logged and swallowed."""
        entry = CallLogEntry(
            api_key_id=api_key_id,
            provider=provider.lower(),
            endpoint=endpoint,
            method=method.upper(),
            status_code=status_code,
            latency_ms=max(0, int(round(latency_ms))),
            error_message=error_message,
        )
        try:
            return self._storage.add_call(entry)
        except Exception:
            logger.exception("[CallLog] Failed to log call to %s %s", method, endpoint)
            return None

    def list_calls(self, api_key_id: str | None = None, limit: int | None = None) -> list[CallLogEntry]:
        return self._storage.list_calls(api_key_id, limit or self.default_limit)

    def prune(self, days_old: int = 30) -> int:
        """Delete entries older than ``days_old`` days; returns the number removed."""
        removed = self._storage.delete_calls_before(utc_now() - timedelta(days=days_old))
        if removed:
            logger.info("[CallLog] Pruned %d entries older than %d days", removed, days_old)
        return removed
