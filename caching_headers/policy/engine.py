"""Header policy engine.

Pure decision functions mapping (CacheConfig, PageContext, body) to the
caching headers of a page response:

    decide_cache_control   -> Cache-Control value
    compute_etag           -> Etag value (MD5 of the full body)
    decide_last_modified   -> Last-Modified value (HTTP-date, GMT)

plus the emoji feature gate that shares the same settings surface.

None of these functions write headers. Writing (and the "headers already
sent" check) belongs to the pipeline in caching_headers.pipeline.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Any

from caching_headers.policy.models import CacheConfig, PageClassification, PageContext

AUTHENTICATED_CACHE_CONTROL = "no-cache, must-revalidate, max-age=0"

EDITOR_EMOJI_PLUGIN = "wpemoji"


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Cache-Control
# ---------------------------------------------------------------------------


def decide_cache_control(config: CacheConfig, ctx: PageContext) -> str:
    """Return the Cache-Control value for a page response.

    Authenticated responses may carry principal-specific content, so they are
    never shared-cached. Everything else gets an s-maxage picked by page type;
    a TTL of 0 is still emitted (``s-maxage=0``).
    """
    if ctx.is_authenticated:
        return AUTHENTICATED_CACHE_CONTROL
    return f"s-maxage={int(config.ttl_for(ctx.classification))}"


# ---------------------------------------------------------------------------
# Etag
# ---------------------------------------------------------------------------


def compute_etag(body: bytes, *, quoted: bool = False) -> str:
    """MD5 digest of the complete response body as lowercase hex.

    Unquoted by default, which existing Varnish setups match on. ``quoted``
    gives the RFC 9110 entity-tag form.
    """
    digest = hashlib.md5(body, usedforsecurity=False).hexdigest()
    if quoted:
        return f'"{digest}"'
    return digest


# ---------------------------------------------------------------------------
# Last-Modified
# ---------------------------------------------------------------------------


def format_http_date(moment: datetime) -> str:
    """Format a datetime as an IMF-fixdate, e.g. ``Mon, 15 Jan 2024 10:00:00 GMT``.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC).replace(microsecond=0), usegmt=True)


def parse_content_timestamp(value: datetime | str | None) -> datetime | None:
    """Coerce a stored content timestamp to a datetime, or None if unusable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None


def decide_last_modified(
    ctx: PageContext,
    now: Callable[[], datetime] = utcnow,
) -> str:
    """Return the Last-Modified value for a page response.

    Single posts/pages with a known timestamp report that timestamp. Every
    other page, and single content with a missing or malformed timestamp,
    reports the current time.
    """
    if ctx.classification == PageClassification.SINGLE:
        modified = parse_content_timestamp(ctx.content_last_modified)
        if modified is not None:
            return format_http_date(modified)
    return format_http_date(now())


# ---------------------------------------------------------------------------
# Emoji feature gate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InjectionPoint:
    """An asset the host application injects at a named assembly point."""

    point: str
    asset: str


EMOJI_INJECTION_POINTS: tuple[InjectionPoint, ...] = (
    InjectionPoint("page_head", "emoji_detection_script"),
    InjectionPoint("admin_scripts", "emoji_detection_script"),
    InjectionPoint("page_styles", "emoji_styles"),
    InjectionPoint("admin_styles", "emoji_styles"),
    InjectionPoint("feed_content", "staticize_emoji"),
    InjectionPoint("comment_feed_text", "staticize_emoji"),
    InjectionPoint("outgoing_mail", "staticize_emoji_for_email"),
)


def should_disable_embedded_scripts(config: CacheConfig) -> bool:
    return not config.emojis_enabled


def suppressed_injection_points(config: CacheConfig) -> frozenset[InjectionPoint]:
    if should_disable_embedded_scripts(config):
        return frozenset(EMOJI_INJECTION_POINTS)
    return frozenset()


def is_injection_enabled(config: CacheConfig, point: str, asset: str) -> bool:
    return InjectionPoint(point, asset) not in suppressed_injection_points(config)


def filter_editor_plugins(plugins: Any) -> list[Any]:
    """Drop the emoji plugin from a rich-text editor plugin list.

    Anything that is not a list yields an empty list.
    """
    if not isinstance(plugins, list):
        return []
    return [plugin for plugin in plugins if plugin != EDITOR_EMOJI_PLUGIN]
