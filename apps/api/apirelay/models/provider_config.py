"""ORM model for upstream provider configuration."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from apirelay.db.base import Base


class ProviderConfig(Base):
    """Credential and tunables for a single whitelisted provider."""

    __tablename__ = "provider_configs"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    api_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    base_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    rate_limit: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    timeout: Mapped[int] = mapped_column(Integer, default=30000, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_checked: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
