"""FastAPI application entrypoint.

Application startup order:
1. Load settings (from environment)
2. Create the options store
3. Register middleware (request id, session, auth, caching headers)
4. Include the settings, health and page routers

Shutdown order:
1. Close the options store
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterable
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from caching_headers.api.router import admin_router, api_v1_router, public_router
from caching_headers.auth.middleware import AuthMiddleware
from caching_headers.config import Settings, get_settings
from caching_headers.options.store import OptionsStore, get_options_store
from caching_headers.pipeline.middleware import CachingHeadersMiddleware
from caching_headers.telemetry.logging import RequestIdMiddleware, configure_logging

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings

    configure_logging(
        json_logs=settings.is_prod,
        log_level="DEBUG" if settings.debug else settings.log_level,
    )

    store_info = await app.state.options_store.info()
    log.info(
        "app.starting",
        environment=settings.environment,
        options_backend=store_info.get("backend"),
        options_connected=store_info.get("connected"),
    )

    log.info("app.ready")
    yield

    await app.state.options_store.close()
    log.info("app.shutdown")


def create_app(
    settings: Settings | None = None,
    *,
    store: OptionsStore | None = None,
    page_routers: Iterable[APIRouter] = (),
) -> FastAPI:
    """Application factory.

    ``page_routers`` are the site's own page routes; they are the responses
    that receive caching headers.
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = get_options_store(settings)

    app = FastAPI(
        title="Caching Headers",
        description=(
            "Cache-Control, Etag and Last-Modified headers tuned for upstream "
            "reverse proxies, with an admin settings surface."
        ),
        version="0.1.0",
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
        openapi_url="/openapi.json" if settings.is_dev else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.options_store = store
    app.dependency_overrides[get_settings] = lambda: settings

    # ------------------------------------------------------------------ #
    # Middleware (added in reverse order - last added = first executed)
    # ------------------------------------------------------------------ #

    # Caching headers need request.state.principal, so they run after auth
    app.add_middleware(CachingHeadersMiddleware, store=store, settings=settings)

    app.add_middleware(AuthMiddleware, settings=settings)

    # Signed admin session holding the settings form CSRF secret
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret.get_secret_value(),
        session_cookie=settings.admin_session_cookie,
        same_site="strict",
        https_only=settings.is_prod,
    )

    # Unique request ID for log correlation
    app.add_middleware(RequestIdMiddleware)

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(public_router)
    app.include_router(admin_router)
    app.include_router(api_v1_router)
    for router in page_routers:
        app.include_router(router)

    # ------------------------------------------------------------------ #
    # Global exception handlers
    # ------------------------------------------------------------------ #

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "app.unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


# Module-level app instance for uvicorn
app = create_app()
