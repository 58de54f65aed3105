"""Repository for usage counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from apirelay.models.usage_stat import UsageStat
from apirelay.repositories.base import BaseRepository


class UsageStatRepository(BaseRepository[UsageStat]):
    """Counter updates are issued as single UPDATE statements so concurrent writers never overwrite each other."""

    def __init__(self):
        super().__init__(UsageStat)

    def get_pair(self, session: Session, api_key_id: str, provider: str) -> UsageStat | None:
        stmt = (
            select(UsageStat)
            .where(UsageStat.api_key_id == api_key_id, UsageStat.provider == provider)
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    def increment(
        self,
        session: Session,
        api_key_id: str,
        provider: str,
        success: bool,
        latency_ms: int,
        when: datetime,
    ) -> UsageStat:
        """
        Bump the counters for a pair, inserting the row on first use.

        Raises IntegrityError when another writer inserted the same pair first;
        callers retry in a fresh transaction.
        """
        stmt = (
            update(UsageStat)
            .where(UsageStat.api_key_id == api_key_id, UsageStat.provider == provider)
            .values(
                request_count=UsageStat.request_count + 1,
                success_count=UsageStat.success_count + (1 if success else 0),
                error_count=UsageStat.error_count + (0 if success else 1),
                total_latency_ms=UsageStat.total_latency_ms + latency_ms,
                last_used_at=when,
            )
            .execution_options(synchronize_session=False)
        )
        if session.execute(stmt).rowcount == 0:
            return self.add(
                session,
                UsageStat(
                    api_key_id=api_key_id,
                    provider=provider,
                    request_count=1,
                    success_count=1 if success else 0,
                    error_count=0 if success else 1,
                    total_latency_ms=latency_ms,
                    last_used_at=when,
                ),
            )
        return self.get_pair(session, api_key_id, provider)

    def list_recent(self, session: Session, api_key_id: str | None = None) -> list[UsageStat]:
        stmt = select(UsageStat).order_by(UsageStat.last_used_at.desc(), UsageStat.id)
        if api_key_id is not None:
            stmt = stmt.where(UsageStat.api_key_id == api_key_id)
        return list(session.execute(stmt).scalars())
