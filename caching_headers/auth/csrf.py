"""CSRF protection for the HTML settings form.

Synchronizer-token scheme:
- A random secret is kept in the signed admin session (SessionMiddleware)
- The form carries that secret signed with a timestamp (itsdangerous)
- A submission is accepted when the signature is valid, not older than
  settings.csrf_time_limit, and the payload matches the session secret

Requests authenticated with the X-API-Key header are exempt: a cross-site
form cannot set custom headers. Cookie-authenticated submissions must carry
the token, in the csrf_token form field or the X-CSRF-Token header.
"""

from __future__ import annotations

import secrets

import structlog
from fastapi import Depends, HTTPException, Request, status
from itsdangerous import BadData, URLSafeTimedSerializer

from caching_headers.auth.middleware import api_key_matches
from caching_headers.config import Settings, get_settings

log = structlog.get_logger(__name__)

CSRF_FIELD_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"

_SESSION_KEY = "csrf_secret"
_SALT = "caching-settings-csrf"


def _serializer(settings: Settings) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.session_secret.get_secret_value(), salt=_SALT)


def csrf_token(request: Request, settings: Settings) -> str:
    """Return a signed token for the current session, creating its secret if needed."""
    raw = request.session.get(_SESSION_KEY)
    if not raw:
        raw = secrets.token_hex(32)
        request.session[_SESSION_KEY] = raw
    return _serializer(settings).dumps(raw)


def validate_csrf(request: Request, provided: str | None, settings: Settings) -> bool:
    expected = request.session.get(_SESSION_KEY)
    if not provided or not expected:
        return False
    try:
        raw = _serializer(settings).loads(provided, max_age=settings.csrf_time_limit)
    except BadData:
        return False
    return isinstance(raw, str) and secrets.compare_digest(raw, expected)


async def require_csrf_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject cookie-authenticated form posts without a valid CSRF token."""
    if api_key_matches(request.headers.get("X-API-Key"), settings):
        return

    provided = request.headers.get(CSRF_HEADER_NAME)
    if not provided:
        form = await request.form()
        value = form.get(CSRF_FIELD_NAME)
        provided = value if isinstance(value, str) else None

    if not validate_csrf(request, provided, settings):
        log.warning(
            "auth.csrf_rejected",
            path=request.url.path,
            token_present=bool(provided),
            origin=request.headers.get("origin"),
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="CSRF token missing or invalid",
        )
