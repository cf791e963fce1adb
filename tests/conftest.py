"""
Shared test fixtures for pytest.

Provides:
- fake_settings: Test environment configuration
- options_store: Fresh in-memory options store
- page_router: A small site (home, posts, archives, other pages)
- test_app: FastAPI app wired with the site, the store and the settings
- client: Async HTTP client for the test app
- admin_headers: Headers carrying the admin key
- fixed_now / frozen_clock: Deterministic "now" for Last-Modified
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import httpx
import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, StreamingResponse

from caching_headers.config import Environment, Settings, get_settings
from caching_headers.options.store import InMemoryOptionsStore

TEST_ADMIN_KEY = "test-admin-key"

POST_BODY = "<html><body><h1>Hello world</h1><p>First post.</p></body></html>"
POST_MODIFIED = "2024-01-15 10:00:00"


@pytest.fixture(autouse=True, scope="session")
def _clear_settings_cache():
    """Clear the lru_cache on get_settings so test overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_settings() -> Settings:
    """Test environment settings with safe defaults."""
    return Settings(
        environment=Environment.TEST,
        admin_api_key=TEST_ADMIN_KEY,
        debug=True,
    )


@pytest.fixture
def options_store() -> InMemoryOptionsStore:
    return InMemoryOptionsStore()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 8, 30, 15, tzinfo=UTC)


@pytest.fixture
def frozen_clock(fixed_now: datetime):
    return lambda: fixed_now


@pytest.fixture
def page_router() -> APIRouter:
    router = APIRouter()

    @router.api_route("/", methods=["GET", "HEAD"], response_class=HTMLResponse)
    async def home() -> str:
        return "<html><body>Front page</body></html>"

    @router.api_route("/posts/{slug}", methods=["GET", "HEAD"], response_class=HTMLResponse)
    async def post(slug: str, request: Request) -> str:
        if slug != "undated":
            request.state.content_last_modified = POST_MODIFIED
        return POST_BODY

    @router.post("/posts/{slug}/comments")
    async def comment(slug: str) -> dict:
        return {"slug": slug, "status": "queued"}

    @router.get("/category/{name}", response_class=HTMLResponse)
    async def category(name: str) -> str:
        return f"<html><body>Archive: {name}</body></html>"

    @router.get("/contact", response_class=HTMLResponse)
    async def contact() -> str:
        return "<html><body>Contact</body></html>"

    @router.get("/administrative-fees", response_class=HTMLResponse)
    async def administrative_fees() -> str:
        return "<html><body>Fees</body></html>"

    @router.get("/stream")
    async def stream() -> StreamingResponse:
        async def chunks():
            for part in (b"alpha-", b"beta-", b"gamma"):
                yield part

        return StreamingResponse(chunks(), media_type="text/plain")

    @router.get("/emoji-state")
    async def emoji_state(request: Request) -> PlainTextResponse:
        suppressed = getattr(request.state, "suppressed_injections", frozenset())
        points = sorted(f"{p.point}:{p.asset}" for p in suppressed)
        return PlainTextResponse("\n".join(points))

    return router


@pytest.fixture
def test_app(
    fake_settings: Settings,
    options_store: InMemoryOptionsStore,
    page_router: APIRouter,
) -> FastAPI:
    from caching_headers.main import create_app

    return create_app(fake_settings, store=options_store, page_routers=[page_router])


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": TEST_ADMIN_KEY}


@pytest.fixture
def post_body() -> str:
    return POST_BODY
