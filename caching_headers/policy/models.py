"""Value types consumed and produced by the header policy engine.

CacheConfig    - immutable snapshot of the caching options for one request
PageContext    - what is being served and to whom
HeaderSet      - ordered, unique-keyed mapping of header name -> value
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum

CACHE_CONTROL = "Cache-Control"
ETAG = "Etag"
LAST_MODIFIED = "Last-Modified"


class PageClassification(StrEnum):
    HOME = "home"
    SINGLE = "single"
    ARCHIVE = "archive"
    OTHER = "other"


@dataclass(frozen=True)
class CacheConfig:
    """Per-request caching options. TTLs are in seconds, 0 means never cache."""

    homepage_ttl: int = 300
    single_ttl: int = 300
    archive_ttl: int = 300
    default_ttl: int = 300
    etag_enabled: bool = False
    last_modified_enabled: bool = False
    emojis_enabled: bool = True

    def __post_init__(self) -> None:
        for name in ("homepage_ttl", "single_ttl", "archive_ttl", "default_ttl"):
            value = getattr(self, name)
            # bool is an int subclass but never a duration
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer number of seconds, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    def ttl_for(self, classification: PageClassification) -> int:
        if classification == PageClassification.HOME:
            return self.homepage_ttl
        if classification == PageClassification.SINGLE:
            return self.single_ttl
        if classification == PageClassification.ARCHIVE:
            return self.archive_ttl
        return self.default_ttl


@dataclass(frozen=True)
class PageContext:
    classification: PageClassification = PageClassification.OTHER
    is_authenticated: bool = False
    # datetime, or the raw stored string; only meaningful for single content
    content_last_modified: datetime | str | None = None

    def with_last_modified(self, value: datetime | str | None) -> PageContext:
        return replace(self, content_last_modified=value)


class HeaderSet(Mapping[str, str]):
    """Ordered header mapping with unique keys.

    Setting a header that is already present replaces its value without
    changing its position.
    """

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        self._items: dict[str, str] = {}
        if items:
            for name, value in items.items():
                self.set(name, value)

    def set(self, name: str, value: str) -> None:
        self._items[name] = value

    def __getitem__(self, name: str) -> str:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderSet({self._items!r})"
