"""Repository for API key database operations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from apirelay.models.api_key import ApiKey
from apirelay.repositories.base import BaseRepository


class ApiKeyRepository(BaseRepository[ApiKey]):
    """Manages API key persistence and retrieval."""

    def __init__(self):
        super().__init__(ApiKey)

    def create(self, session: Session, data: dict) -> ApiKey:
        """Create a new API key record."""
        api_key = ApiKey(**data)
        return self.add(session, api_key)

    def get_by_key(self, session: Session, key: str) -> ApiKey | None:
        """Retrieve an API key by its secret."""
        stmt = select(ApiKey).where(ApiKey.key == key)
        result = session.execute(stmt)
        return result.scalar_one_or_none()

    def list_ordered(self, session: Session, active_only: bool = True) -> list[ApiKey]:
        """Return keys oldest first."""
        stmt = select(ApiKey).order_by(ApiKey.created_at, ApiKey.id)
        if active_only:
            stmt = stmt.where(ApiKey.is_active.is_(True))
        return list(session.execute(stmt).scalars())

    def update_last_used(self, session: Session, api_key: ApiKey, when: datetime) -> ApiKey:
        """Update the last_used_at timestamp for an API key."""
        api_key.last_used_at = when
        session.flush()
        return api_key

    def revoke(self, session: Session, api_key: ApiKey) -> ApiKey:
        """Revoke an API key by setting is_active to False."""
        api_key.is_active = False
        session.flush()
        return api_key

    def revoke_expired(self, session: Session, now: datetime) -> int:
        """Deactivate every active key whose expiry has passed."""
        stmt = (
            update(ApiKey)
            .where(ApiKey.is_active.is_(True))
            .where(ApiKey.expires_at.is_not(None))
            .where(ApiKey.expires_at < now)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount
