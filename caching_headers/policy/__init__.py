"""Header Policy Engine.

Public API:
    CacheConfig, PageContext, PageClassification, HeaderSet
    decide_cache_control    - Cache-Control for a page
    compute_etag            - content digest for the Etag header
    decide_last_modified    - Last-Modified HTTP-date
    should_disable_embedded_scripts, suppressed_injection_points,
    is_injection_enabled, filter_editor_plugins - emoji feature gate
"""

from caching_headers.policy.engine import (
    AUTHENTICATED_CACHE_CONTROL,
    EDITOR_EMOJI_PLUGIN,
    EMOJI_INJECTION_POINTS,
    InjectionPoint,
    compute_etag,
    decide_cache_control,
    decide_last_modified,
    filter_editor_plugins,
    format_http_date,
    is_injection_enabled,
    parse_content_timestamp,
    should_disable_embedded_scripts,
    suppressed_injection_points,
)
from caching_headers.policy.models import (
    CACHE_CONTROL,
    ETAG,
    LAST_MODIFIED,
    CacheConfig,
    HeaderSet,
    PageClassification,
    PageContext,
)

__all__ = [
    "AUTHENTICATED_CACHE_CONTROL",
    "CACHE_CONTROL",
    "EDITOR_EMOJI_PLUGIN",
    "EMOJI_INJECTION_POINTS",
    "ETAG",
    "LAST_MODIFIED",
    "CacheConfig",
    "HeaderSet",
    "InjectionPoint",
    "PageClassification",
    "PageContext",
    "compute_etag",
    "decide_cache_control",
    "decide_last_modified",
    "filter_editor_plugins",
    "format_http_date",
    "is_injection_enabled",
    "parse_content_timestamp",
    "should_disable_embedded_scripts",
    "suppressed_injection_points",
]
