"""Relational storage backend built on SQLAlchemy repositories."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from apirelay.core.config import Settings
from apirelay.core.exceptions import ConflictError, NotFoundError
from apirelay.db.session import create_db_engine, create_session_factory, init_db
from apirelay.models import ApiCallLog, ApiKey, ProviderConfig, UsageStat
from apirelay.repositories import (
    ApiCallLogRepository,
    ApiKeyRepository,
    ProviderConfigRepository,
    UsageStatRepository,
)
from apirelay.services.models import (
    ApiKeyRecord,
    CallLogEntry,
    ProviderConfigRecord,
    UsageRecord,
    ensure_utc,
)
from apirelay.storage.base import Storage

logger = logging.getLogger(__name__)

_USAGE_INSERT_ATTEMPTS = 3


class DatabaseStorage(Storage):
    """
    Runs every operation in its own short transaction.

    A StaticPool engine (in-memory SQLite) hands the same connection to every
    session, so operations on such an engine are serialized behind a lock.
    """

    def __init__(self, engine: Engine, session_factory: sessionmaker | None = None) -> None:
        self._engine = engine
        self._session_factory = session_factory or create_session_factory(engine)
        self._keys = ApiKeyRepository()
        self._providers = ProviderConfigRepository()
        self._usage = UsageStatRepository()
        self._calls = ApiCallLogRepository()
        self._exclusive = threading.Lock() if isinstance(engine.pool, StaticPool) else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseStorage":
        engine = create_db_engine(settings)
        if settings.database_auto_create:
            init_db(engine)
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._exclusive or nullcontext():
            with self._session_factory() as session:
                yield session

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with self._exclusive or nullcontext():
            with self._session_factory.begin() as session:
                yield session

    # ---- API keys -------------------------------------------------------

    def insert_key(self, record: ApiKeyRecord) -> ApiKeyRecord:
        try:
            with self._transaction() as session:
                row = self._keys.create(
                    session,
                    {
                        "id": record.id,
                        "name": record.name,
                        "key": record.key,
                        "providers": list(record.providers),
                        "created_at": record.created_at,
                        "expires_at": record.expires_at,
                        "last_used_at": record.last_used_at,
                        "is_active": record.is_active,
                    },
                )
                return _key_record(row)
        except IntegrityError as exc:
            raise ConflictError("API key already exists", {"id": record.id}) from exc

    def get_key(self, key_id: str) -> ApiKeyRecord | None:
        with self._session() as session:
            row = self._keys.get(session, key_id)
            return _key_record(row) if row else None

    def get_key_by_secret(self, secret: str) -> ApiKeyRecord | None:
        with self._session() as session:
            row = self._keys.get_by_key(session, secret)
            return _key_record(row) if row else None

    def list_keys(self, active_only: bool = True) -> list[ApiKeyRecord]:
        with self._session() as session:
            return [_key_record(row) for row in self._keys.list_ordered(session, active_only)]

    def deactivate_key(self, key_id: str) -> bool:
        with self._transaction() as session:
            row = self._keys.get(session, key_id)
            if row is None:
                return False
            self._keys.revoke(session, row)
            return True

    def touch_key(self, secret: str, when: datetime) -> bool:
        with self._transaction() as session:
            row = self._keys.get_by_key(session, secret)
            if row is None or not row.is_active:
                return False
            self._keys.update_last_used(session, row, when)
            return True

    def deactivate_expired_keys(self, now: datetime) -> int:
        with self._transaction() as session:
            return self._keys.revoke_expired(session, now)

    # ---- Provider configs -----------------------------------------------

    def insert_provider(self, record: ProviderConfigRecord) -> ProviderConfigRecord:
        try:
            with self._transaction() as session:
                if self._providers.get(session, record.name) is not None:
                    raise ConflictError(f"Provider {record.name} is already initialized")
                row = self._providers.add(session, ProviderConfig(**_provider_columns(record)))
                return _provider_record(row)
        except IntegrityError as exc:
            raise ConflictError(f"Provider {record.name} is already initialized") from exc

    def update_provider(self, record: ProviderConfigRecord) -> ProviderConfigRecord:
        with self._transaction() as session:
            row = self._providers.get(session, record.name)
            if row is None:
                raise NotFoundError("Provider", record.name)
            for column, value in _provider_columns(record).items():
                setattr(row, column, value)
            session.flush()
            return _provider_record(row)

    def get_provider(self, name: str) -> ProviderConfigRecord | None:
        with self._session() as session:
            row = self._providers.get(session, name)
            return _provider_record(row) if row else None

    def list_providers(self) -> list[ProviderConfigRecord]:
        with self._session() as session:
            return [_provider_record(row) for row in self._providers.list_by_name(session)]

    def delete_provider(self, name: str) -> bool:
        with self._transaction() as session:
            return self._providers.delete_by_name(session, name)

    # ---- Usage counters -------------------------------------------------

    def increment_usage(
        self,
        api_key_id: str,
        provider: str,
        success: bool,
        latency_ms: int,
        when: datetime,
    ) -> UsageRecord:
        for attempt in range(1, _USAGE_INSERT_ATTEMPTS + 1):
            try:
                with self._transaction() as session:
                    row = self._usage.increment(
                        session, api_key_id, provider, success, latency_ms, when
                    )
                    return _usage_record(row)
            except IntegrityError:
                if attempt == _USAGE_INSERT_ATTEMPTS:
                    raise
                logger.debug(
                    "Usage row for %s/%s inserted concurrently, retrying (attempt %d)",
                    api_key_id,
                    provider,
                    attempt,
                )
        raise RuntimeError("unreachable")  # pragma: no cover

    def list_usage(self, api_key_id: str | None = None) -> list[UsageRecord]:
        with self._session() as session:
            return [_usage_record(row) for row in self._usage.list_recent(session, api_key_id)]

    # ---- Call log -------------------------------------------------------

    def add_call(self, entry: CallLogEntry) -> CallLogEntry:
        with self._transaction() as session:
            row = self._calls.add(
                session,
                ApiCallLog(
                    api_key_id=entry.api_key_id,
                    provider=entry.provider,
                    endpoint=entry.endpoint,
                    method=entry.method,
                    status_code=entry.status_code,
                    latency_ms=entry.latency_ms,
                    error_message=entry.error_message,
                    created_at=entry.created_at,
                ),
            )
            return _call_entry(row)

    def list_calls(self, api_key_id: str | None = None, limit: int = 100) -> list[CallLogEntry]:
        with self._session() as session:
            return [_call_entry(row) for row in self._calls.list_recent(session, api_key_id, limit)]

    def delete_calls_before(self, cutoff: datetime) -> int:
        with self._transaction() as session:
            return self._calls.delete_older_than(session, cutoff)


def _key_record(row: ApiKey) -> ApiKeyRecord:
    return ApiKeyRecord(
        id=row.id,
        name=row.name,
        key=row.key,
        providers=list(row.providers or []),
        created_at=ensure_utc(row.created_at),
        expires_at=ensure_utc(row.expires_at),
        last_used_at=ensure_utc(row.last_used_at),
        is_active=row.is_active,
    )


def _provider_columns(record: ProviderConfigRecord) -> dict:
    return {
        "name": record.name,
        "api_key": record.api_key,
        "base_url": record.base_url,
        "rate_limit": record.rate_limit,
        "timeout": record.timeout,
        "created_at": record.created_at,
        "last_checked": record.last_checked,
    }


def _provider_record(row: ProviderConfig) -> ProviderConfigRecord:
    return ProviderConfigRecord(
        name=row.name,
        api_key=row.api_key,
        base_url=row.base_url,
        rate_limit=row.rate_limit,
        timeout=row.timeout,
        created_at=ensure_utc(row.created_at),
        last_checked=ensure_utc(row.last_checked),
    )


def _usage_record(row: UsageStat) -> UsageRecord:
    return UsageRecord(
        api_key_id=row.api_key_id,
        provider=row.provider,
        request_count=row.request_count,
        success_count=row.success_count,
        error_count=row.error_count,
        total_latency_ms=row.total_latency_ms,
        last_used_at=ensure_utc(row.last_used_at),
    )


def _call_entry(row: ApiCallLog) -> CallLogEntry:
    return CallLogEntry(
        id=row.id,
        api_key_id=row.api_key_id,
        provider=row.provider,
        endpoint=row.endpoint,
        method=row.method,
        status_code=row.status_code,
        latency_ms=row.latency_ms,
        error_message=row.error_message,
        created_at=ensure_utc(row.created_at),
    )
