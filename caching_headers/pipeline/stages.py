"""Ordered request pipeline stages.

One RequestPipeline is built per page request and driven in this order:

    1. cache_control()     decide and queue Cache-Control
    2. begin_capture()     start buffering the body (Etag enabled only)
    3. <render>            the route handler produces the body
    4. end_capture(body)   digest the body, queue Etag, hand the body back
    5. last_modified(ctx)  decide and queue Last-Modified (if enabled)
    6. flush(headers)      write queued headers onto the response

Every header write goes through the HeaderSink, so a stage that runs after
flush() is a silent no-op. end_capture() always returns the captured body,
whether or not its header could still be written.
"""

from __future__ import annotations

from collections.abc import Callable, MutableMapping
from datetime import datetime

import structlog

from caching_headers.pipeline.sinks import BodyCapture, HeaderSink
from caching_headers.policy.engine import (
    compute_etag,
    decide_cache_control,
    decide_last_modified,
    utcnow,
)
from caching_headers.policy.models import (
    CACHE_CONTROL,
    ETAG,
    LAST_MODIFIED,
    CacheConfig,
    HeaderSet,
    PageContext,
)

log = structlog.get_logger(__name__)


class RequestPipeline:
    def __init__(
        self,
        config: CacheConfig,
        context: PageContext,
        *,
        sink: HeaderSink | None = None,
        quote_etag: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.context = context
        self.sink = sink or HeaderSink()
        self._quote_etag = quote_etag
        self._clock = clock
        self._capture: BodyCapture | None = None

    @property
    def capturing(self) -> bool:
        return self._capture is not None and self._capture.active

    def cache_control(self) -> str | None:
        if self.sink.headers_sent:
            return None
        value = decide_cache_control(self.config, self.context)
        self.sink.write(CACHE_CONTROL, value)
        log.debug(
            "pipeline.cache_control",
            classification=self.context.classification,
            authenticated=self.context.is_authenticated,
            value=value,
        )
        return value

    def begin_capture(self) -> bool:
        """Start buffering output. Returns False when Etag is disabled."""
        if not self.config.etag_enabled:
            return False
        self._capture = BodyCapture()
        self._capture.begin()
        return True

    def feed(self, chunk: bytes | str) -> None:
        if self._capture is None:
            raise RuntimeError("feed() called without an active capture")
        self._capture.feed(chunk)

    def end_capture(self, body: bytes | None = None) -> tuple[str | None, bytes]:
        """Finish buffering and tag the body.

        ``body`` is appended to whatever was fed so far. Returns the Etag (None
        if it could not be written) and the complete, unmodified body.
        """
        if self._capture is None:
            raise RuntimeError("end_capture() called without begin_capture()")
        if body:
            self._capture.feed(body)
        captured = self._capture.end()
        self._capture = None

        if self.sink.headers_sent:
            log.debug("pipeline.etag_skipped", reason="headers_sent", size=len(captured))
            return None, captured

        etag = compute_etag(captured, quoted=self._quote_etag)
        self.sink.write(ETAG, etag)
        return etag, captured

    def last_modified(self, context: PageContext | None = None) -> str | None:
        if context is not None:
            self.context = context
        if not self.config.last_modified_enabled or self.sink.headers_sent:
            return None
        value = decide_last_modified(self.context, now=self._clock)
        self.sink.write(LAST_MODIFIED, value)
        return value

    def flush(self, headers: MutableMapping[str, str]) -> HeaderSet:
        return self.sink.flush_to(headers)
