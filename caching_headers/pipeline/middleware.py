"""Caching headers middleware for FastAPI/Starlette.

Runs the RequestPipeline around every page request:

- Only GET and HEAD requests are handled (other methods pass through)
- Paths under settings.bypass_path_prefixes (admin, API, probes) are skipped;
  prefixes match whole path segments
- The CacheConfig snapshot is read from the options store once per request
- Authentication is read from request.state.principal, set by the upstream
  AuthMiddleware, so this middleware must sit after it in the stack

Headers added to page responses:
- Cache-Control: s-maxage=<ttl>, or no-cache for authenticated visitors
- Etag: MD5 of the body (when enable_etag is on)
- Last-Modified: HTTP-date (when enable_last_modified is on)

Route handlers can read request.state.cache_config and
request.state.suppressed_injections to leave out emoji assets.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from caching_headers.config import Settings
from caching_headers.options.fields import load_cache_config
from caching_headers.options.store import OptionsStore
from caching_headers.pipeline.classifier import PageClassifier
from caching_headers.pipeline.stages import RequestPipeline
from caching_headers.policy.engine import suppressed_injection_points, utcnow

log = structlog.get_logger(__name__)

_CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


def _is_bypassed(path: str, prefixes: tuple[str, ...]) -> bool:
    """Match prefixes on whole path segments, so /admin does not cover /administrative."""
    for prefix in prefixes:
        base = prefix.rstrip("/")
        if path == prefix or path == base or path.startswith(base + "/"):
            return True
    return False


def _with_buffered_body(response: Response, body: bytes) -> Response:
    """Rebuild a consumed streaming response around its captured body."""
    rebuilt = Response(
        content=body,
        status_code=response.status_code,
        background=response.background,
    )
    # Keep every original header (including repeated Set-Cookie) verbatim.
    rebuilt.raw_headers = list(response.raw_headers)
    return rebuilt


class CachingHeadersMiddleware(BaseHTTPMiddleware):
    """Add Cache-Control / Etag / Last-Modified headers to page responses."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        store: OptionsStore,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(app)
        self._store = store
        self._classifier = PageClassifier(settings)
        self._bypass_prefixes = tuple(settings.bypass_path_prefixes)
        self._quote_etag = settings.quote_etag
        self._clock = clock

    def _applies_to(self, request: Request) -> bool:
        if request.method not in _CACHEABLE_METHODS:
            return False
        return not _is_bypassed(request.url.path, self._bypass_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._applies_to(request):
            return await call_next(request)

        config = await load_cache_config(self._store)
        context = self._classifier.classify(request)
        pipeline = RequestPipeline(
            config,
            context,
            quote_etag=self._quote_etag,
            clock=self._clock,
        )

        request.state.cache_config = config
        request.state.suppressed_injections = suppressed_injection_points(config)

        pipeline.cache_control()
        capturing = pipeline.begin_capture()

        response = await call_next(request)

        if capturing:
            async for chunk in response.body_iterator:
                pipeline.feed(chunk)
            _, body = pipeline.end_capture()
            response = _with_buffered_body(response, body)

        pipeline.last_modified(self._classifier.refine(context, request))
        headers = pipeline.flush(response.headers)

        log.debug(
            "pipeline.headers_applied",
            path=request.url.path,
            classification=context.classification,
            headers=dict(headers),
        )
        return response
