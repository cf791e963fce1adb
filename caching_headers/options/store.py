"""Options store implementations.

Defines the OptionsStore ABC and two concrete implementations:
- RedisOptionsStore: Production store using Redis with JSON serialization
- InMemoryOptionsStore: Dict-based store, for testing/dev

Options are persistent key-value pairs (no TTL). Read failures are logged
and reported as missing keys so a broken store degrades to the defaults
instead of failing page responses.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from caching_headers.config import OptionsBackend, Settings

log = structlog.get_logger(__name__)


class OptionsStore(ABC):
    """Abstract interface all options stores must implement."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value for key, or None if not set."""

    @abstractmethod
    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return {key: value} for every key that is set."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store value under key."""

    @abstractmethod
    async def set_many(self, values: Mapping[str, Any]) -> None:
        """Store several values at once."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key (no-op if key does not exist)."""

    @abstractmethod
    async def info(self) -> dict[str, Any]:
        """Return backend-specific info/stats dict."""

    async def close(self) -> None:
        """Release connections held by the store."""


# ---------------------------------------------------------------------------
# Redis store
# ---------------------------------------------------------------------------


class RedisOptionsStore(OptionsStore):
    """Options store backed by Redis.

    Values are JSON-serialised so ints and bools round-trip with their type.
    The client is created lazily on first call so construction never blocks.
    """

    def __init__(self, redis_url: str, key_prefix: str = "") -> None:
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._client: Any = None  # redis.asyncio.Redis, set on first use

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def _get_client(self) -> Any:
        """Return or create the Redis client (lazy init)."""
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def get(self, key: str) -> Any | None:
        try:
            client = await self._get_client()
            raw = await client.get(self._key(key))
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as exc:
            log.warning("options.redis.get_failed", key=key, error=str(exc))
            return None

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        keys = list(keys)
        if not keys:
            return {}
        try:
            client = await self._get_client()
            raws = await client.mget([self._key(k) for k in keys])
        except Exception as exc:
            log.warning("options.redis.get_many_failed", keys=keys, error=str(exc))
            return {}

        values: dict[str, Any] = {}
        for key, raw in zip(keys, raws):
            if raw is None:
                continue
            try:
                values[key] = json.loads(raw)
            except ValueError:
                log.warning("options.redis.undecodable_value", key=key)
        return values

    async def set(self, key: str, value: Any) -> None:
        client = await self._get_client()
        await client.set(self._key(key), json.dumps(value))

    async def set_many(self, values: Mapping[str, Any]) -> None:
        if not values:
            return
        client = await self._get_client()
        await client.mset({self._key(k): json.dumps(v) for k, v in values.items()})

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        await client.delete(self._key(key))

    async def info(self) -> dict[str, Any]:
        try:
            client = await self._get_client()
            await client.ping()
            return {
                "backend": "redis",
                "url": self._redis_url,
                "connected": True,
                "key_prefix": self._key_prefix,
            }
        except Exception as exc:
            return {
                "backend": "redis",
                "url": self._redis_url,
                "connected": False,
                "error": str(exc),
            }

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            try:
                await self._client.aclose()
            except Exception as exc:
                log.warning("options.redis.close_failed", error=str(exc))
            self._client = None


# ---------------------------------------------------------------------------
# In-memory store (testing / dev)
# ---------------------------------------------------------------------------


class InMemoryOptionsStore(OptionsStore):
    """Dict-backed options store.

    Guarded by an asyncio.Lock. Suitable for testing and single-process
    dev environments. Does NOT persist across process restarts.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._store: dict[str, Any] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            return self._store.get(key)

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        async with self._lock:
            return {k: self._store[k] for k in keys if k in self._store}

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._store[key] = value

    async def set_many(self, values: Mapping[str, Any]) -> None:
        async with self._lock:
            self._store.update(values)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def info(self) -> dict[str, Any]:
        async with self._lock:
            return {
                "backend": "memory",
                "connected": True,
                "total_keys": len(self._store),
            }


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_options_store(settings: Settings) -> OptionsStore:
    """Return the OptionsStore selected by ``settings.options_backend``."""
    if settings.options_backend == OptionsBackend.REDIS:
        log.info("options.backend_selected", backend="redis", url=settings.redis_url)
        return RedisOptionsStore(settings.redis_url, key_prefix=settings.options_key_prefix)

    log.info("options.backend_selected", backend="memory")
    return InMemoryOptionsStore()
