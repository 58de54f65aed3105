"""Provider configuration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from apirelay.core.exceptions import NotFoundError, ValidationError
from apirelay.routers.deps import get_services
from apirelay.schemas.provider import ProviderCheckResponse, ProviderConfigRead, ProviderUpsert
from apirelay.services.container import RelayServices
from apirelay.services.models import utc_now

router = APIRouter(prefix="/api/config/providers", tags=["Providers"])


@router.get("", response_model=list[ProviderConfigRead])
def list_providers(services: RelayServices = Depends(get_services)) -> list[ProviderConfigRead]:
    return [ProviderConfigRead.from_record(record) for record in services.provider_registry.list()]


@router.post("/{name}", response_model=ProviderConfigRead)
def upsert_provider(
    name: str,
    payload: ProviderUpsert | None = None,
    services: RelayServices = Depends(get_services),
) -> ProviderConfigRead:
    """Initialize or update a provider; omitted fields keep their stored values."""

    update = (payload or ProviderUpsert()).to_settings()
    try:
        record = services.provider_registry.initialize_or_update(name, update)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

    return ProviderConfigRead.from_record(record)


@router.get("/{name}", response_model=ProviderConfigRead)
def get_provider(name: str, services: RelayServices = Depends(get_services)) -> ProviderConfigRead:
    try:
        record = services.provider_registry.get(name)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found") from exc

    return ProviderConfigRead.from_record(record)


@router.post("/{name}/check", response_model=ProviderCheckResponse)
def check_provider(name: str, services: RelayServices = Depends(get_services)) -> ProviderCheckResponse:
    """Report whether the provider has a usable credential."""

    registry = services.provider_registry
    try:
        healthy = registry.check_health(name)
        record = registry.get(name)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc

    checked_at = record.last_checked or utc_now()
    return ProviderCheckResponse(name=record.name, healthy=healthy, checked_at=checked_at)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_provider(name: str, services: RelayServices = Depends(get_services)) -> Response:
    if not services.provider_registry.delete(name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
