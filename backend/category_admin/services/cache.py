"""
Optional cache in front of the category read paths.

Keys are derived explicitly per entity/query shape (CacheKeys) and every
mutation computes its own invalidation set. The CacheFront never lets a
backend failure escape: reads degrade to a miss, writes and invalidations
are logged and dropped, and the store stays the source of truth.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
import redis.asyncio as redis
from category_admin.core.config import settings
from category_admin.core.exceptions import CacheError
import logging

logger = logging.getLogger(__name__)


class CacheKeys:
    """Cache key derivation. Every category key lives under CATEGORY_NAMESPACE."""

    CATEGORY_NAMESPACE = "category:"
    SEARCH_NAMESPACE = "category:search:"

    CATEGORY_ALL = "category:all"

    @staticmethod
    def category_by_id(category_id: str) -> str:
        return f"category:id:{category_id}"

    @staticmethod
    def category_stats(category_id: str) -> str:
        """Reserved for per-category stats readers; invalidated with the category."""
        return f"category:stats:{category_id}"

    @staticmethod
    def category_tags(category_id: str) -> str:
        """Reserved for per-category tag readers; invalidated with the category."""
        return f"category:tags:{category_id}"

    @staticmethod
    def search_results(query: str) -> str:
        return f"category:search:{query.strip().lower()}"

    @staticmethod
    def content_by_category(category_id: str) -> str:
        return f"category:content:{category_id}"


def category_invalidation_keys(category_id: Optional[str] = None) -> List[str]:
    """Keys made stale by a change to one category (or to the list only)."""
    keys = [CacheKeys.CATEGORY_ALL]
    if category_id:
        keys.extend(
            [
                CacheKeys.category_by_id(category_id),
                CacheKeys.category_stats(category_id),
                CacheKeys.category_tags(category_id),
                CacheKeys.content_by_category(category_id),
            ]
        )
    return keys


class CacheBackend(ABC):
    """Raw string key/value store. Implementations may raise on failure."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        ...

    async def close(self) -> None:
        pass


class MemoryCacheBackend(CacheBackend):
    """Process-local backend with per-key expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Optional[float], str]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at is not None and expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._entries[key] = (expires_at, value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)


class RedisCacheBackend(CacheBackend):
    """Backend on a Redis server via the redis-py asyncio client."""

    def __init__(self, url: str, client: Optional[redis.Redis] = None):
        self.client = client or redis.Redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self.client.set(key, value, ex=ttl or None)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [key async for key in self.client.scan_iter(match=f"{prefix}*")]
        if not keys:
            return 0
        return await self.client.delete(*keys)

    async def close(self) -> None:
        await self.client.aclose()


class CacheFront:
    """
    Best-effort JSON cache used by the category service.

    With no backend every read is a miss and every write is a no-op, which is
    how caching is switched off.
    """

    def __init__(self, backend: Optional[CacheBackend] = None, default_ttl: Optional[int] = None):
        self.backend = backend
        self.default_ttl = default_ttl if default_ttl is not None else settings.CACHE_DEFAULT_TTL

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    def _report(self, operation: str, key: str, error: Exception) -> None:
        logger.warning(str(CacheError(operation, key, error)))

    async def get(self, key: str) -> Optional[Any]:
        if not self.backend:
            return None
        try:
            raw = await self.backend.get(key)
            if raw is None:
                return None
            logger.debug(f"Cache hit for {key}")
            return json.loads(raw)
        except Exception as e:
            self._report("get", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.backend:
            return False
        try:
            await self.backend.set(key, json.dumps(value, default=str), ttl or self.default_ttl)
            return True
        except Exception as e:
            self._report("set", key, e)
            return False

    async def delete(self, key: str) -> bool:
        if not self.backend:
            return False
        try:
            await self.backend.delete(key)
            return True
        except Exception as e:
            self._report("delete", key, e)
            return False

    async def delete_many(self, keys: Iterable[str]) -> None:
        """Invalidate keys concurrently; absent keys are a no-op."""
        unique_keys = list(dict.fromkeys(keys))
        if not self.backend or not unique_keys:
            return
        await asyncio.gather(*(self.delete(key) for key in unique_keys))

    async def clear_namespace(self, prefix: str) -> int:
        if not self.backend:
            return 0
        try:
            removed = await self.backend.delete_prefix(prefix)
            logger.debug(f"Cleared {removed} cache keys under {prefix}")
            return removed
        except Exception as e:
            self._report("clear", prefix, e)
            return 0

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        Any falsy cached value (0, False, "", [], {}) counts as a miss and is
        recomputed.
        """
        cached = await self.get(key)
        if cached:
            return cached

        value = await factory()
        await self.set(key, value, ttl)
        return value

    async def close(self) -> None:
        if not self.backend:
            return
        try:
            await self.backend.close()
        except Exception as e:
            self._report("close", "*", e)


def build_cache_backend(backend: str, redis_url: str) -> Optional[CacheBackend]:
    if backend == "redis":
        return RedisCacheBackend(redis_url)
    if backend == "memory":
        return MemoryCacheBackend()
    return None


_cache_front: Optional[CacheFront] = None


def get_cache_front() -> CacheFront:
    """Process-wide cache front built from settings on first use."""
    global _cache_front
    if _cache_front is None:
        _cache_front = CacheFront(
            build_cache_backend(settings.CACHE_BACKEND, settings.REDIS_URL),
            default_ttl=settings.CACHE_DEFAULT_TTL,
        )
        logger.info(f"Cache front initialised with backend: {settings.CACHE_BACKEND}")
    return _cache_front
