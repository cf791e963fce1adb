from caching_headers.auth.csrf import (
    CSRF_FIELD_NAME,
    CSRF_HEADER_NAME,
    csrf_token,
    require_csrf_token,
    validate_csrf,
)
from caching_headers.auth.dependencies import require_admin
from caching_headers.auth.middleware import (
    PRINCIPAL_ADMIN,
    PRINCIPAL_MEMBER,
    AuthMiddleware,
    api_key_matches,
    extract_admin_key,
    resolve_principal,
)

__all__ = [
    "CSRF_FIELD_NAME",
    "CSRF_HEADER_NAME",
    "PRINCIPAL_ADMIN",
    "PRINCIPAL_MEMBER",
    "AuthMiddleware",
    "api_key_matches",
    "csrf_token",
    "extract_admin_key",
    "require_admin",
    "require_csrf_token",
    "resolve_principal",
    "validate_csrf",
]
