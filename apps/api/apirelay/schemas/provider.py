"""Pydantic schemas for provider configuration."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field

from apirelay.schemas.base import CamelModel
from apirelay.services.models import ProviderConfigRecord
from apirelay.services.provider_registry import ProviderSettings


class ProviderUpsert(CamelModel):
    """Fields omitted from the payload keep their stored value."""

    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("apiKey", "api_key", "credential"),
        description="Upstream credential",
    )
    base_url: Optional[str] = Field(None, description="Override for the upstream base URL")
    rate_limit: Optional[int] = Field(None, gt=0, description="Requests per minute")
    timeout: Optional[int] = Field(None, gt=0, description="Upstream timeout in milliseconds")

    def to_settings(self) -> ProviderSettings:
        return ProviderSettings(
            api_key=self.api_key,
            base_url=self.base_url,
            rate_limit=self.rate_limit,
            timeout=self.timeout,
        )


class ProviderConfigRead(CamelModel):
    """Provider configuration with the credential masked."""

    name: str
    is_configured: bool
    api_key_preview: Optional[str] = Field(None, description="Last four characters of the credential")
    base_url: Optional[str]
    rate_limit: int
    timeout: int
    created_at: datetime
    last_checked: Optional[datetime]

    @classmethod
    def from_record(cls, record: ProviderConfigRecord) -> "ProviderConfigRead":
        return cls(
            name=record.name,
            is_configured=record.is_configured,
            api_key_preview=f"****{record.api_key[-4:]}" if record.api_key else None,
            base_url=record.base_url,
            rate_limit=record.rate_limit,
            timeout=record.timeout,
            created_at=record.created_at,
            last_checked=record.last_checked,
        )


class ProviderCheckResponse(CamelModel):
    name: str
    healthy: bool
    checked_at: datetime
