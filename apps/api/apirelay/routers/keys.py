"""API key management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from apirelay.core.exceptions import NotFoundError, ValidationError
from apirelay.routers.deps import get_services, require_api_key
from apirelay.schemas.api_key import ApiKeyCreate, ApiKeyRead
from apirelay.services.authorization import AuthContext
from apirelay.services.container import RelayServices

router = APIRouter(prefix="/api/keys", tags=["API Keys"])


@router.post("", response_model=ApiKeyRead, status_code=status.HTTP_201_CREATED)
def create_api_key(
    payload: ApiKeyCreate,
    services: RelayServices = Depends(get_services),
) -> ApiKeyRead:
    """Create a new API key scoped to the given providers."""

    try:
        record = services.key_store.create(payload.name, payload.providers, payload.expires_in)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

    return ApiKeyRead.from_record(record)


@router.get("", response_model=list[ApiKeyRead])
def list_api_keys(services: RelayServices = Depends(get_services)) -> list[ApiKeyRead]:
    """List active API keys, oldest first."""

    return [ApiKeyRead.from_record(record) for record in services.key_store.list()]


@router.get("/me", response_model=ApiKeyRead)
def read_current_key(
    context: AuthContext = Depends(require_api_key),
    services: RelayServices = Depends(get_services),
) -> ApiKeyRead:
    """Return the key used to authenticate this request."""

    return ApiKeyRead.from_record(services.key_store.get(context.key_id))


@router.get("/{key_id}", response_model=ApiKeyRead)
def get_api_key(key_id: str, services: RelayServices = Depends(get_services)) -> ApiKeyRead:
    """Fetch a key by id; deleted keys are returned with ``isActive`` false."""

    try:
        record = services.key_store.get(key_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Key not found") from exc

    return ApiKeyRead.from_record(record)


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_api_key(key_id: str, services: RelayServices = Depends(get_services)) -> Response:
    """Deactivate a key."""

    if not services.key_store.delete(key_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Key not found")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
