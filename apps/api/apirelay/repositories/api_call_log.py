"""Repository for the proxied call log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from apirelay.models.api_call_log import ApiCallLog
from apirelay.repositories.base import BaseRepository


class ApiCallLogRepository(BaseRepository[ApiCallLog]):
    def __init__(self):
        super().__init__(ApiCallLog)

    def list_recent(
        self, session: Session, api_key_id: str | None = None, limit: int = 100
    ) -> list[ApiCallLog]:
        """Return the newest entries first."""
        stmt = select(ApiCallLog).order_by(ApiCallLog.created_at.desc(), ApiCallLog.id.desc()).limit(limit)
        if api_key_id is not None:
            stmt = stmt.where(ApiCallLog.api_key_id == api_key_id)
        return list(session.execute(stmt).scalars())

    def delete_older_than(self, session: Session, cutoff: datetime) -> int:
        result = session.execute(delete(ApiCallLog).where(ApiCallLog.created_at < cutoff))
        return result.rowcount
