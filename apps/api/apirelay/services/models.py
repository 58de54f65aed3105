"""Domain records shared by the services and the storage backends."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def average_latency(total_latency_ms: int | float, request_count: int) -> int:
    """Mean latency rounded half up, 0 when nothing was recorded."""
    if request_count <= 0:
        return 0
    return int(math.floor(total_latency_ms / request_count + 0.5))


class ExpiryPolicy(str, Enum):
    """Lifetime options offered when a key is created."""

    NEVER = "never"
    DAYS_90 = "90days"
    DAYS_180 = "180days"

    def resolve(self, created_at: datetime) -> datetime | None:
        if self is ExpiryPolicy.NEVER:
            return None
        days = 90 if self is ExpiryPolicy.DAYS_90 else 180
        return created_at + timedelta(days=days)


@dataclass
class ApiKeyRecord:
    """A bearer key and the providers it may reach."""

    id: str
    name: str
    key: str
    providers: list[str]
    created_at: datetime = field(default_factory=utc_now)
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    is_active: bool = True

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utc_now()) > self.expires_at

    def grants(self, provider: str) -> bool:
        return provider.lower() in self.providers


@dataclass
class ProviderConfigRecord:
    """Settings for one upstream provider."""

    name: str
    api_key: str | None = None
    base_url: str | None = None
    rate_limit: int = 100
    timeout: int = 30000  # milliseconds
    created_at: datetime = field(default_factory=utc_now)
    last_checked: datetime | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class UsageRecord:
    """Running counters for one (api key, provider) pair."""

    api_key_id: str
    provider: str
    request_count: int = 0
    success_count: int = 0
    error_count: int = 0
    total_latency_ms: int = 0
    last_used_at: datetime = field(default_factory=utc_now)

    @property
    def avg_latency_ms(self) -> int:
        return average_latency(self.total_latency_ms, self.request_count)


@dataclass
class CallLogEntry:
    """A single proxied call, kept for troubleshooting."""

    api_key_id: str
    provider: str
    endpoint: str
    method: str
    status_code: int | None = None
    latency_ms: int = 0
    error_message: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    id: int | None = None
