from fastapi import APIRouter, Depends

from apirelay.routers.deps import get_services
from apirelay.services.container import RelayServices
from apirelay.services.models import utc_now


router = APIRouter()


@router.get("/api/health", tags=["Health"])
def read_health(services: RelayServices = Depends(get_services)) -> dict[str, str]:
    settings = services.settings
    return {
        "status": "ok",
        "service": settings.app_name,
        "version": settings.app_version,
        "storage": settings.storage_backend,
        "timestamp": utc_now().isoformat(),
    }
