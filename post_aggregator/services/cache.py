"""Cache facade with pluggable backends.

Backends:
  - Redis: shared store configured through REDIS_URL
  - Memory: cachetools in-process cache (tests, single-worker runs)
  - Null: always misses and drops writes (no cache configured)

Reads and writes never fail the caller. Only connect_cache() raises, so a
bad REDIS_URL stops the process at startup instead of per request.
"""

import logging
from typing import Protocol

import redis.asyncio as aioredis
from cachetools import LRUCache, TTLCache
from redis.exceptions import RedisError

from post_aggregator.config import Settings
from post_aggregator.errors import CacheError

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    """Minimal async key-value store used by the facade."""

    name: str

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def close(self) -> None:
        ...


class NullCacheBackend:
    """Backend used when no cache is configured."""

    name = "none"

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str) -> None:
        return None

    async def close(self) -> None:
        return None


class MemoryCacheBackend:
    """Process-local backend on top of cachetools."""

    name = "memory"

    def __init__(self, maxsize: int = 1024, ttl: int = 0):
        if ttl > 0:
            self._store = TTLCache(maxsize=maxsize, ttl=ttl)
        else:
            self._store = LRUCache(maxsize=maxsize)

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str) -> None:
        self._store[key] = value

    async def close(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class RedisCacheBackend:
    """Redis backend. The client is shared by every concurrent fetcher."""

    name = "redis"

    def __init__(self, client: aioredis.Redis, ttl: int = 0):
        self._redis = client
        self._ttl = ttl

    @classmethod
    async def connect(cls, url: str, ttl: int = 0) -> "RedisCacheBackend":
        """Open a client for `url` and verify it with PING."""
        try:
            client = aioredis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=3,
            )
        except ValueError as e:
            raise CacheError(f"Invalid REDIS_URL: {e}") from e

        try:
            await client.ping()
        except (RedisError, OSError) as e:
            await client.aclose()
            raise CacheError(f"Redis connection failed: {e}") from e

        return cls(client, ttl=ttl)

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._redis.set(key, value, ex=self._ttl or None)

    async def close(self) -> None:
        await self._redis.aclose()


class CacheFacade:
    """Best-effort cache access. Errors are logged and treated as a miss."""

    def __init__(self, backend: CacheBackend | None = None):
        self.backend: CacheBackend = backend if backend is not None else NullCacheBackend()

    @property
    def enabled(self) -> bool:
        return not isinstance(self.backend, NullCacheBackend)

    async def try_read(self, key: str) -> str | None:
        """Return the cached value, or None on miss or backend error."""
        try:
            value = await self.backend.get(key)
        except Exception as e:
            logger.warning("Cache GET error | backend=%s | key=%s | %s",
                           self.backend.name, key[:60], str(e)[:100])
            return None

        if value is not None:
            logger.debug("Cache HIT | backend=%s | key=%s", self.backend.name, key[:60])
        return value

    async def try_write(self, key: str, value: str) -> None:
        """Store a value; failures are logged and dropped."""
        try:
            await self.backend.set(key, value)
            logger.debug("Cache SET | backend=%s | key=%s", self.backend.name, key[:60])
        except Exception as e:
            logger.warning("Cache SET error | backend=%s | key=%s | %s",
                           self.backend.name, key[:60], str(e)[:100])

    async def close(self) -> None:
        await self.backend.close()


def make_tag_key(tag: str) -> str:
    """Per-tag tier: the tag itself."""
    return tag


def make_query_key(tags: list[str], sort_by: str, direction: str) -> str:
    """Per-query tier, e.g. ``tech,health:likes:desc``.

    Tag order is kept as requested, so ``a,b`` and ``b,a`` are distinct keys.
    """
    return f"{','.join(tags)}:{sort_by}:{direction}"


async def connect_cache(settings: Settings) -> CacheFacade:
    """Build the cache facade at startup. Raises CacheError on bad config."""
    backend_name = settings.resolved_cache_backend

    if backend_name == "redis":
        if not settings.redis_url:
            raise CacheError("cache_backend=redis requires REDIS_URL")
        backend = await RedisCacheBackend.connect(
            settings.redis_url, ttl=settings.cache_ttl_seconds,
        )
    elif backend_name == "memory":
        backend = MemoryCacheBackend(
            maxsize=settings.memory_cache_maxsize, ttl=settings.cache_ttl_seconds,
        )
    else:
        backend = NullCacheBackend()

    return CacheFacade(backend)
