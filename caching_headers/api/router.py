"""Main API router - aggregates all sub-routers.

JSON endpoints are versioned under /api/v1; the HTML settings form lives
under /admin and health checks at the root.
"""

from __future__ import annotations

from fastapi import APIRouter

from caching_headers.api import health, settings

# Public router (no auth required)
public_router = APIRouter()
public_router.include_router(health.router)

# Admin HTML pages
admin_router = APIRouter()
admin_router.include_router(settings.page_router)

# Versioned API router
api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(settings.router)
