"""Response header and body sinks used by the request pipeline."""

from __future__ import annotations

from collections.abc import MutableMapping

import structlog

from caching_headers.policy.models import HeaderSet

log = structlog.get_logger(__name__)


class HeaderSink:
    """Collects the caching headers of one response until they are sent.

    Stages write into a pending HeaderSet. flush_to() copies it onto the
    outgoing response headers and marks the sink as sent; any write after that
    point is dropped, mirroring a header() call after output has started.
    """

    def __init__(self) -> None:
        self._pending = HeaderSet()
        self._sent = False

    @property
    def headers_sent(self) -> bool:
        return self._sent

    @property
    def pending(self) -> HeaderSet:
        return self._pending

    def write(self, name: str, value: str) -> bool:
        """Queue a header. Returns False (and does nothing) once sent."""
        if self._sent:
            log.debug("pipeline.header_after_send", header=name)
            return False
        self._pending.set(name, value)
        return True

    def flush_to(self, headers: MutableMapping[str, str]) -> HeaderSet:
        """Apply the pending headers to ``headers`` and seal the sink."""
        if not self._sent:
            for name, value in self._pending.items():
                headers[name] = value
            self._sent = True
        return self._pending


class BodyCapture:
    """Per-request output buffer for the Etag digest.

    Bytes fed between begin() and end() are returned by end() exactly as
    received; end() releases the buffer.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] | None = None

    @property
    def active(self) -> bool:
        return self._chunks is not None

    def begin(self) -> None:
        self._chunks = []

    def feed(self, chunk: bytes | str) -> None:
        if self._chunks is None:
            raise RuntimeError("BodyCapture.feed() called before begin()")
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._chunks.append(chunk)

    def end(self) -> bytes:
        if self._chunks is None:
            raise RuntimeError("BodyCapture.end() called before begin()")
        body = b"".join(self._chunks)
        self._chunks = None
        return body
