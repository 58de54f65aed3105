"""Request dependencies resolving the application's services."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from apirelay.core.exceptions import AuthenticationError, AuthorizationError
from apirelay.services.authorization import AuthContext, AuthorizationGate
from apirelay.services.container import RelayServices


def get_services(request: Request) -> RelayServices:
    return request.app.state.services


def auth_http_error(exc: AuthenticationError | AuthorizationError) -> HTTPException:
    """Map gate failures to 401 (who are you) or 403 (what can you do)."""

    if isinstance(exc, AuthenticationError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer", "X-API-Key-Status": exc.reason},
        )
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)


def require_api_key(
    authorization: str | None = Header(None),
    services: RelayServices = Depends(get_services),
) -> AuthContext:
    """Strict gate: the request must carry a valid, active bearer key."""

    try:
        return services.gate.authenticate(authorization)
    except (AuthenticationError, AuthorizationError) as exc:
        raise auth_http_error(exc) from exc


def require_provider(provider: str):
    """Dependency factory adding a provider-scope check on top of ``require_api_key``."""

    def dependency(context: AuthContext = Depends(require_api_key)) -> AuthContext:
        try:
            return AuthorizationGate.require_provider(context, provider)
        except AuthorizationError as exc:
            raise auth_http_error(exc) from exc

    return dependency
