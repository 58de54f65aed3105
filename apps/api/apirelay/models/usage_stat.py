"""ORM model for per key/provider usage counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from apirelay.db.base import Base


class UsageStat(Base):
    """Running counters for one (api key, provider) pair.

    Rows are kept after the key or provider is removed so history stays auditable,
    hence no foreign keys.
    """

    __tablename__ = "usage_stats"
    __table_args__ = (
        UniqueConstraint("api_key_id", "provider", name="uq_usage_stats_key_provider"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    api_key_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    request_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    success_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_latency_ms: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_used_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
