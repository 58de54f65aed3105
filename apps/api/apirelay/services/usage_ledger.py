"""Per key/provider usage counters and their aggregated views."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from apirelay.services.models import UsageRecord, average_latency, utc_now
from apirelay.storage.base import Storage

logger = logging.getLogger(__name__)

KeyNameResolver = Callable[[str], str | None]


@dataclass
class UsageAggregate:
    """Totals for a group of usage records (one provider or one key)."""

    group: str
    total_requests: int = 0
    total_success: int = 0
    total_errors: int = 0
    total_latency_ms: int = 0
    records: list[UsageRecord] = field(default_factory=list)

    @property
    def avg_latency_ms(self) -> int:
        return average_latency(self.total_latency_ms, self.total_requests)

    def add(self, record: UsageRecord) -> None:
        self.total_requests += record.request_count
        self.total_success += record.success_count
        self.total_errors += record.error_count
        self.total_latency_ms += record.total_latency_ms
        self.records.append(record)


class UsageLedger:
    """
    Accumulates request outcomes per (api key id, provider).

    ``success_count + error_count == request_count`` holds for every record;
    the storage backend serializes concurrent updates of the same pair.
    """

    def __init__(self, storage: Storage, key_name_resolver: KeyNameResolver | None = None) -> None:
        self._storage = storage
        self._resolve_key_name = key_name_resolver

    def record(
        self, api_key_id: str, provider: str, success: bool, latency_ms: float
    ) -> UsageRecord | None:
        """
        Count one call. Negative latencies are clamped to zero.

        Storage failures are logged and swallowed; None is returned in that case.
        """
        latency = max(0, int(round(latency_ms)))
        try:
            updated = self._storage.increment_usage(
                api_key_id, provider.lower(), bool(success), latency, utc_now()
            )
        except Exception:
            logger.exception("[UsageLedger] Failed to record usage for %s/%s", api_key_id, provider)
            return None
        logger.debug(
            "[UsageLedger] %s/%s requests=%d errors=%d",
            api_key_id,
            updated.provider,
            updated.request_count,
            updated.error_count,
        )
        return updated

    def query(self, api_key_id: str | None = None) -> list[UsageRecord]:
        """All records, or only those of one key, most recently used first."""
        return self._storage.list_usage(api_key_id)

    def aggregate_by_provider(self, api_key_id: str | None = None) -> dict[str, UsageAggregate]:
        groups: dict[str, UsageAggregate] = {}
        for record in self.query(api_key_id):
            groups.setdefault(record.provider, UsageAggregate(group=record.provider)).add(record)
        return groups

    def aggregate_by_key(self, provider: str | None = None) -> dict[str, UsageAggregate]:
        """Group by api key id. Names are not unique so they are never used as the group."""
        groups: dict[str, UsageAggregate] = {}
        for record in self.query():
            if provider is not None and record.provider != provider.lower():
                continue
            groups.setdefault(record.api_key_id, UsageAggregate(group=record.api_key_id)).add(record)
        return groups

    def summary(self) -> dict[str, Any]:
        """Dashboard view: overall totals plus per-provider and per-key breakdowns."""
        records = self.query()
        by_provider = self.aggregate_by_provider()
        by_key = self.aggregate_by_key()

        return {
            "timestamp": utc_now().isoformat(),
            "summary": {
                "totalRequests": sum(r.request_count for r in records),
                "totalSuccess": sum(r.success_count for r in records),
                "totalErrors": sum(r.error_count for r in records),
                "totalKeys": len(by_key),
                "totalProviders": len(by_provider),
            },
            "byProvider": {
                provider: {
                    **self._totals(aggregate),
                    "provider": provider,
                    "keys": [
                        {"keyId": r.api_key_id, "keyName": self._key_name(r.api_key_id), **self._row(r)}
                        for r in aggregate.records
                    ],
                }
                for provider, aggregate in by_provider.items()
            },
            "byKey": {
                key_id: {
                    **self._totals(aggregate),
                    "keyId": key_id,
                    "keyName": self._key_name(key_id),
                    "providers": [{"provider": r.provider, **self._row(r)} for r in aggregate.records],
                }
                for key_id, aggregate in by_key.items()
            },
        }

    def key_summary(self, api_key_id: str) -> dict[str, Any]:
        """Totals for one key; an unknown key yields zeros and no providers."""
        aggregate = UsageAggregate(group=api_key_id)
        for record in self.query(api_key_id):
            aggregate.add(record)

        return {
            "keyId": api_key_id,
            **self._totals(aggregate),
            "providers": [{"provider": r.provider, **self._row(r)} for r in aggregate.records],
        }

    def _key_name(self, api_key_id: str) -> str:
        if self._resolve_key_name is None:
            return api_key_id
        return self._resolve_key_name(api_key_id) or api_key_id

    @staticmethod
    def _totals(aggregate: UsageAggregate) -> dict[str, int]:
        return {
            "totalRequests": aggregate.total_requests,
            "totalSuccess": aggregate.total_success,
            "totalErrors": aggregate.total_errors,
            "avgLatencyMs": aggregate.avg_latency_ms,
        }

    @staticmethod
    def _row(record: UsageRecord) -> dict[str, Any]:
        return {
            "requests": record.request_count,
            "success": record.success_count,
            "errors": record.error_count,
            "avgLatencyMs": record.avg_latency_ms,
            "lastUsedAt": record.last_used_at.isoformat(),
        }
