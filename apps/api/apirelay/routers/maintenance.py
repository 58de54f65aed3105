"""Housekeeping endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from apirelay.routers.deps import get_services
from apirelay.schemas.stats import CleanupResponse
from apirelay.services.container import RelayServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/maintenance", tags=["Maintenance"])


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup(services: RelayServices = Depends(get_services)) -> CleanupResponse:
    """Deactivate expired keys and prune old call log entries."""

    expired = services.key_store.deactivate_expired()
    pruned = services.call_log.prune(services.settings.call_log_retention_days)
    logger.info("Cleanup finished: %d expired keys, %d log entries pruned", expired, pruned)
    return CleanupResponse(expired_keys=expired, pruned_logs=pruned)
