"""Pydantic schemas for usage statistics and maintenance."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from apirelay.schemas.base import CamelModel


class CallLogRead(CamelModel):
    id: Optional[int]
    api_key_id: str
    provider: str
    endpoint: str
    method: str
    status_code: Optional[int]
    latency_ms: int
    error_message: Optional[str]
    created_at: datetime


class CleanupResponse(CamelModel):
    expired_keys: int
    pruned_logs: int
