"""Pydantic schemas for API key management."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from apirelay.schemas.base import CamelModel
from apirelay.services.models import ApiKeyRecord


class ApiKeyCreate(CamelModel):
    """Request payload for creating a new API key.

    Emptiness and whitelist checks happen in the key store so that the caller
    gets a single explanatory message.
    """

    name: str = Field("", max_length=255, description="Human-readable name for the API key")
    providers: list[str] = Field(default_factory=list, description="Providers the key may access")
    expires_in: Optional[Literal["never", "90days", "180days"]] = Field(
        None, description="Key lifetime, defaults to 90 days"
    )


class ApiKeyRead(CamelModel):
    """API key as returned by every key endpoint."""

    id: str
    name: str
    key: str
    providers: list[str]
    created_at: datetime
    expires_at: Optional[datetime]
    last_used_at: Optional[datetime]
    is_active: bool

    @classmethod
    def from_record(cls, record: ApiKeyRecord) -> "ApiKeyRead":
        return cls(
            id=record.id,
            name=record.name,
            key=record.key,
            providers=list(record.providers),
            created_at=record.created_at,
            expires_at=record.expires_at,
            last_used_at=record.last_used_at,
            is_active=record.is_active,
        )
