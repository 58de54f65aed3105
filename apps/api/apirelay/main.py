import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apirelay.core.config import Settings, get_settings
from apirelay.routers import health, keys, maintenance, providers, proxy, stats
from apirelay.services.container import build_services
from apirelay.storage import Storage, create_storage


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
    search_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Build the application and its service graph.

    The storage backend is created here (or injected) and handed to every
    service; nothing in the core holds module-level state.
    """

    active_settings = settings or get_settings()
    active_storage = storage or create_storage(active_settings)
    services = build_services(active_settings, active_storage, search_transport=search_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting %s %s with %s storage",
            active_settings.app_name,
            active_settings.app_version,
            active_settings.storage_backend,
        )
        yield
        services.close()
        logger.info("Storage closed")

    app = FastAPI(title=active_settings.app_name, version=active_settings.app_version, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=active_settings.resolved_cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(keys.router)
    app.include_router(providers.router)
    app.include_router(proxy.router)
    app.include_router(stats.router)
    app.include_router(maintenance.router)
    app.include_router(health.router)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Explicit health endpoint for readiness probes."""
        return {
            "status": "ok",
            "service": active_settings.app_name,
            "version": active_settings.app_version,
        }

    return app


app = create_app()
