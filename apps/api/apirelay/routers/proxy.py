"""Provider proxy endpoints."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool

from apirelay.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    UpstreamError,
    ValidationError,
)
from apirelay.routers.deps import auth_http_error, get_services, require_provider
from apirelay.schemas.search import SearchRequest, SearchResponseBody
from apirelay.services.authorization import AuthContext
from apirelay.services.container import RelayServices
from apirelay.services.models import utc_now
from apirelay.services.search import SearchQuery

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proxy", tags=["Proxy"])

BRAVE = "brave"


@router.post("/brave/search", response_model=SearchResponseBody)
async def brave_search(
    request: Request,
    payload: SearchRequest,
    authorization: str | None = Header(None),
    services: RelayServices = Depends(get_services),
) -> SearchResponseBody:
    """Search via Brave. Anonymous calls are allowed; a supplied key must grant ``brave``."""

    return await _proxy_search(request, services, payload, authorization)


@router.get("/brave/search", response_model=SearchResponseBody)
async def brave_search_get(
    request: Request,
    q: str | None = Query(None),
    count: int | None = Query(None),
    offset: int | None = Query(None),
    safesearch: str | None = Query(None),
    authorization: str | None = Header(None),
    services: RelayServices = Depends(get_services),
) -> SearchResponseBody:
    payload = SearchRequest(q=q, count=count, offset=offset, safesearch=safesearch)
    return await _proxy_search(request, services, payload, authorization)


@router.get("/brave/status")
def brave_status(
    context: AuthContext = Depends(require_provider(BRAVE)),
    services: RelayServices = Depends(get_services),
) -> dict[str, object]:
    """Tell a brave-scoped caller whether results will come from the live API."""

    configured = services.brave_search.is_configured()
    return {
        "provider": BRAVE,
        "keyName": context.key_name,
        "configured": configured,
        "mock": not configured,
    }


async def _proxy_search(
    request: Request,
    services: RelayServices,
    payload: SearchRequest,
    authorization: str | None,
) -> SearchResponseBody:
    settings = services.settings
    try:
        query = SearchQuery(
            q=payload.q or "",
            count=payload.count if payload.count is not None else settings.brave_default_count,
            offset=payload.offset if payload.offset is not None else 0,
            safesearch=payload.safesearch or "moderate",
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

    try:
        context = await run_in_threadpool(
            services.gate.authorize, authorization, BRAVE, allow_anonymous=True
        )
    except (AuthenticationError, AuthorizationError) as exc:
        raise auth_http_error(exc) from exc

    start = time.perf_counter()
    status_code: int | None = status.HTTP_200_OK
    error_message: str | None = None
    try:
        result = await services.brave_search.search(query)
    except UpstreamError as exc:
        logger.warning("Brave search failed, serving fallback results: %s", exc.message)
        status_code = exc.status_code
        error_message = exc.message
        result = services.brave_search.mock_results(query)
    latency_ms = (time.perf_counter() - start) * 1000

    if context is not None:
        await run_in_threadpool(
            _report_outcome,
            services,
            context,
            request.method,
            request.url.path,
            status_code,
            latency_ms,
            error_message,
        )

    return SearchResponseBody.from_response(result, utc_now())


def _report_outcome(
    services: RelayServices,
    context: AuthContext,
    method: str,
    endpoint: str,
    status_code: int | None,
    latency_ms: float,
    error_message: str | None,
) -> None:
    """Feed the usage ledger and call log; neither raises into the request."""

    success = error_message is None
    services.usage_ledger.record(context.key_id, BRAVE, success, latency_ms)

    services.call_log.log_call(
        context.key_id,
        BRAVE,
        endpoint,
        method,
        status_code,
        latency_ms,
        error_message,
    )
