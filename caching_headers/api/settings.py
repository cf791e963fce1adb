"""Caching settings endpoints.

Admin-only surface for reading and changing the caching options.

GET  /admin/caching-settings     - HTML settings form
POST /admin/caching-settings     - Save the submitted form (303 back to the form)
GET  /api/v1/settings/caching    - Current options as JSON
PUT  /api/v1/settings/caching    - Partial JSON update

Every endpoint requires the admin key (X-API-Key header or admin cookie).
Form posts authenticated by the cookie must also carry the CSRF token
rendered into the form.
The form is rendered from SETTINGS_SECTIONS; adding an option to that table
is enough to make it appear here.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict

from caching_headers.api.deps import get_store
from caching_headers.auth.csrf import CSRF_FIELD_NAME, csrf_token, require_csrf_token
from caching_headers.auth.dependencies import require_admin
from caching_headers.config import Settings, get_settings
from caching_headers.options.fields import (
    DURATION_CHOICES,
    SETTINGS_SECTIONS,
    InvalidOptionValueError,
    load_options,
    parse_settings_form,
    parse_settings_update,
    save_options,
)
from caching_headers.options.store import OptionsStore

log = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

page_router = APIRouter(prefix="/admin", tags=["admin"])
router = APIRouter(prefix="/settings", tags=["settings"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class CachingOptions(BaseModel):
    cache_control_homepage: int
    cache_control_single: int
    cache_control_archive: int
    cache_control_default: int
    enable_etag: bool
    enable_last_modified: bool
    enable_emojis: bool


class CachingOptionsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cache_control_homepage: int | None = None
    cache_control_single: int | None = None
    cache_control_archive: int | None = None
    cache_control_default: int | None = None
    enable_etag: bool | None = None
    enable_last_modified: bool | None = None
    enable_emojis: bool | None = None


# ---------------------------------------------------------------------------
# HTML form
# ---------------------------------------------------------------------------


async def _render_form(
    request: Request,
    store: OptionsStore,
    settings: Settings,
    *,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    values = await load_options(store)
    return templates.TemplateResponse(
        request,
        "caching_settings.html",
        {
            "sections": SETTINGS_SECTIONS,
            "duration_choices": DURATION_CHOICES,
            "values": values,
            "updated": request.query_params.get("updated") == "1",
            "error": error,
            "csrf_field_name": CSRF_FIELD_NAME,
            "csrf_token": csrf_token(request, settings),
        },
        status_code=status_code,
    )


@page_router.get("/caching-settings", response_class=HTMLResponse)
async def settings_page(
    request: Request,
    _admin: str = Depends(require_admin),
    store: OptionsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> HTMLResponse:
    return await _render_form(request, store, settings)


@page_router.post("/caching-settings")
async def save_settings_page(
    request: Request,
    _admin: str = Depends(require_admin),
    _csrf: None = Depends(require_csrf_token),
    store: OptionsStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    form = await request.form()
    try:
        values = parse_settings_form(form)
    except InvalidOptionValueError as exc:
        log.info("settings.form_rejected", key=exc.key)
        return await _render_form(
            request,
            store,
            settings,
            error=str(exc),
            status_code=422,
        )

    await save_options(store, values)
    log.info("settings.saved", source="form")
    return RedirectResponse(
        url=f"{request.url.path}?updated=1",
        status_code=status.HTTP_303_SEE_OTHER,
    )


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------


@router.get("/caching", response_model=CachingOptions)
async def get_caching_options(
    _admin: str = Depends(require_admin),
    store: OptionsStore = Depends(get_store),
) -> CachingOptions:
    return CachingOptions(**await load_options(store))


@router.put("/caching", response_model=CachingOptions)
async def update_caching_options(
    update: CachingOptionsUpdate,
    _admin: str = Depends(require_admin),
    store: OptionsStore = Depends(get_store),
) -> CachingOptions:
    """Apply a partial update. Durations must be one of the form choices."""
    try:
        values = parse_settings_update(update.model_dump(exclude_none=True))
    except InvalidOptionValueError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc

    await save_options(store, values)
    log.info("settings.saved", source="api", keys=sorted(values))
    return CachingOptions(**await load_options(store))
