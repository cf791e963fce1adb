"""FastAPI dependencies for the admin settings surface."""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException, Request, status

from caching_headers.auth.middleware import api_key_matches, extract_admin_key
from caching_headers.config import Settings, get_settings

log = structlog.get_logger(__name__)


async def require_admin(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str:
    """Reject callers that do not present the admin key.

    401 when no key is sent, 403 when the key is wrong.
    """
    presented = extract_admin_key(request, settings)
    if not presented:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-API-Key header",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    if not api_key_matches(presented, settings):
        log.warning("auth.admin_key_rejected", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin API key",
        )
    return "admin"
