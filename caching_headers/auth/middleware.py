"""Principal detection middleware.

This Starlette middleware runs before the caching headers middleware. It:
1. Checks for the admin key in the X-API-Key header (or the admin cookie)
2. Otherwise looks for a login session cookie (name starts with
   settings.session_cookie_prefix)
3. Stores the result in request.state.principal ("admin", "member" or None)

We deliberately do NOT reject requests here. Pages are public; the only
effect of a principal on page responses is that they are never shared-cached.
The admin settings surface enforces the key with require_admin().
"""

from __future__ import annotations

import hmac

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from caching_headers.config import Settings

log = structlog.get_logger(__name__)

PRINCIPAL_ADMIN = "admin"
PRINCIPAL_MEMBER = "member"


def api_key_matches(candidate: str | None, settings: Settings) -> bool:
    """Constant-time comparison of a presented key against the admin key."""
    if not candidate:
        return False
    expected = settings.admin_api_key.get_secret_value()
    return hmac.compare_digest(candidate.encode(), expected.encode())


def extract_admin_key(request: Request, settings: Settings) -> str | None:
    """X-API-Key header takes precedence over the admin cookie."""
    return request.headers.get("X-API-Key") or request.cookies.get(settings.admin_cookie_name)


def resolve_principal(request: Request, settings: Settings) -> str | None:
    if api_key_matches(extract_admin_key(request, settings), settings):
        return PRINCIPAL_ADMIN

    prefix = settings.session_cookie_prefix
    if prefix and any(name.startswith(prefix) for name in request.cookies):
        return PRINCIPAL_MEMBER

    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """Inject request.state.principal for downstream middleware and routes."""

    def __init__(self, app: ASGIApp, *, settings: Settings) -> None:
        super().__init__(app)
        self._settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        principal = resolve_principal(request, self._settings)
        request.state.principal = principal
        if principal is not None:
            log.debug("auth.principal_detected", principal=principal)
        return await call_next(request)
