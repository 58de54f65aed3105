"""Repository for provider configuration rows."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from apirelay.models.provider_config import ProviderConfig
from apirelay.repositories.base import BaseRepository


class ProviderConfigRepository(BaseRepository[ProviderConfig]):
    def __init__(self):
        super().__init__(ProviderConfig)

    def list_by_name(self, session: Session) -> list[ProviderConfig]:
        return list(session.execute(select(ProviderConfig).order_by(ProviderConfig.name)).scalars())

    def delete_by_name(self, session: Session, name: str) -> bool:
        result = session.execute(delete(ProviderConfig).where(ProviderConfig.name == name))
        return result.rowcount > 0
