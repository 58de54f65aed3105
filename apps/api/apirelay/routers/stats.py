"""Usage statistics endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from apirelay.routers.deps import get_services
from apirelay.schemas.stats import CallLogRead
from apirelay.services.container import RelayServices

router = APIRouter(prefix="/api/stats", tags=["Stats"])


@router.get("")
def get_stats(services: RelayServices = Depends(get_services)) -> dict[str, Any]:
    """Aggregated usage across all keys and providers."""

    return services.usage_ledger.summary()


@router.get("/keys/{key_id}")
def get_key_stats(key_id: str, services: RelayServices = Depends(get_services)) -> dict[str, Any]:
    """Usage for one key; unknown keys report zeros."""

    return services.usage_ledger.key_summary(key_id)


@router.get("/logs", response_model=list[CallLogRead])
def list_call_logs(
    key_id: str | None = Query(None, alias="keyId"),
    limit: int = Query(100, ge=1, le=1000),
    services: RelayServices = Depends(get_services),
) -> list[CallLogRead]:
    """Most recent proxied calls, newest first."""

    return [CallLogRead.model_validate(entry) for entry in services.call_log.list_calls(key_id, limit)]
