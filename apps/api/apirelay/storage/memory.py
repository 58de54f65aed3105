"""In-process storage backend guarded by thread locks."""

from __future__ import annotations

import itertools
import threading
from collections import defaultdict
from dataclasses import replace
from datetime import datetime

from apirelay.core.exceptions import ConflictError, NotFoundError
from apirelay.services.models import (
    ApiKeyRecord,
    CallLogEntry,
    ProviderConfigRecord,
    UsageRecord,
)
from apirelay.storage.base import Storage

UsageKey = tuple[str, str]


class MemoryStorage(Storage):
    """Keeps all state in dictionaries for the lifetime of the instance."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._keys: dict[str, ApiKeyRecord] = {}  # insertion order == creation order
        self._key_ids_by_secret: dict[str, str] = {}
        self._providers: dict[str, ProviderConfigRecord] = {}
        self._usage: dict[UsageKey, UsageRecord] = {}
        self._usage_locks: dict[UsageKey, threading.Lock] = defaultdict(threading.Lock)
        self._calls: list[CallLogEntry] = []
        self._call_ids = itertools.count(1)

    # ---- API keys -------------------------------------------------------

    def insert_key(self, record: ApiKeyRecord) -> ApiKeyRecord:
        with self._lock:
            if record.id in self._keys or record.key in self._key_ids_by_secret:
                raise ConflictError("API key already exists", {"id": record.id})
            stored = replace(record, providers=list(record.providers))
            self._keys[stored.id] = stored
            self._key_ids_by_secret[stored.key] = stored.id
            return replace(stored, providers=list(stored.providers))

    def get_key(self, key_id: str) -> ApiKeyRecord | None:
        with self._lock:
            record = self._keys.get(key_id)
            return _copy_key(record) if record else None

    def get_key_by_secret(self, secret: str) -> ApiKeyRecord | None:
        with self._lock:
            key_id = self._key_ids_by_secret.get(secret)
            return _copy_key(self._keys[key_id]) if key_id else None

    def list_keys(self, active_only: bool = True) -> list[ApiKeyRecord]:
        with self._lock:
            return [
                _copy_key(record)
                for record in self._keys.values()
                if record.is_active or not active_only
            ]

    def deactivate_key(self, key_id: str) -> bool:
        with self._lock:
            record = self._keys.get(key_id)
            if record is None:
                return False
            record.is_active = False
            return True

    def touch_key(self, secret: str, when: datetime) -> bool:
        with self._lock:
            key_id = self._key_ids_by_secret.get(secret)
            if key_id is None or not self._keys[key_id].is_active:
                return False
            self._keys[key_id].last_used_at = when
            return True

    def deactivate_expired_keys(self, now: datetime) -> int:
        changed = 0
        with self._lock:
            for record in self._keys.values():
                if record.is_active and record.is_expired(now):
                    record.is_active = False
                    changed += 1
        return changed

    # ---- Provider configs -----------------------------------------------

    def insert_provider(self, record: ProviderConfigRecord) -> ProviderConfigRecord:
        with self._lock:
            if record.name in self._providers:
                raise ConflictError(f"Provider {record.name} is already initialized")
            self._providers[record.name] = replace(record)
            return replace(record)

    def update_provider(self, record: ProviderConfigRecord) -> ProviderConfigRecord:
        with self._lock:
            if record.name not in self._providers:
                raise NotFoundError("Provider", record.name)
            self._providers[record.name] = replace(record)
            return replace(record)

    def get_provider(self, name: str) -> ProviderConfigRecord | None:
        with self._lock:
            record = self._providers.get(name)
            return replace(record) if record else None

    def list_providers(self) -> list[ProviderConfigRecord]:
        with self._lock:
            return [replace(self._providers[name]) for name in sorted(self._providers)]

    def delete_provider(self, name: str) -> bool:
        with self._lock:
            return self._providers.pop(name, None) is not None

    # ---- Usage counters -------------------------------------------------

    def increment_usage(
        self,
        api_key_id: str,
        provider: str,
        success: bool,
        latency_ms: int,
        when: datetime,
    ) -> UsageRecord:
        pair: UsageKey = (api_key_id, provider)
        with self._lock:
            pair_lock = self._usage_locks[pair]

        with pair_lock:
            record = self._usage.get(pair)
            if record is None:
                record = UsageRecord(api_key_id=api_key_id, provider=provider, last_used_at=when)
                self._usage[pair] = record
            record.request_count += 1
            if success:
                record.success_count += 1
            else:
                record.error_count += 1
            record.total_latency_ms += latency_ms
            record.last_used_at = when
            return replace(record)

    def list_usage(self, api_key_id: str | None = None) -> list[UsageRecord]:
        with self._lock:
            pairs = list(self._usage.items())

        records = []
        for pair, record in pairs:
            if api_key_id is not None and pair[0] != api_key_id:
                continue
            with self._usage_locks[pair]:
                records.append(replace(record))
        records.sort(key=lambda item: item.last_used_at, reverse=True)
        return records

    # ---- Call log -------------------------------------------------------

    def add_call(self, entry: CallLogEntry) -> CallLogEntry:
        with self._lock:
            stored = replace(entry, id=next(self._call_ids))
            self._calls.append(stored)
            return replace(stored)

    def list_calls(self, api_key_id: str | None = None, limit: int = 100) -> list[CallLogEntry]:
        with self._lock:
            entries = [
                replace(entry)
                for entry in self._calls
                if api_key_id is None or entry.api_key_id == api_key_id
            ]
        entries.sort(key=lambda item: (item.created_at, item.id or 0), reverse=True)
        return entries[:limit]

    def delete_calls_before(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [entry for entry in self._calls if entry.created_at >= cutoff]
            removed = len(self._calls) - len(kept)
            self._calls = kept
            return removed


def _copy_key(record: ApiKeyRecord) -> ApiKeyRecord:
    return replace(record, providers=list(record.providers))
