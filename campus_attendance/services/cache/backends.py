"""
Storage backends for the query cache.

Backends store JSON-serializable values with a per-entry TTL. The in-memory
backend is process-local; the Redis backend lets several service instances
share one cache so an invalidation on one is seen by all.
"""
import copy
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import redis.asyncio as redis

from campus_attendance.core.config import settings


logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        """Stored value, or None when missing or expired."""
        ...

    async def set(self, key: str, value: Any, ttl: int) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def flush_all(self) -> None:
        ...

    async def keys(self) -> List[str]:
        ...


class InMemoryCacheBackend:
    """
    Dictionary-backed cache with lazy expiry.

    Expired entries are never returned; a sweep of all expired entries runs at
    most once every ``check_period`` seconds. Values are deep-copied on the way
    in and out so cached results cannot be mutated by callers.
    """

    def __init__(
        self,
        check_period: int = 60,
        clock: Callable[[], float] = time.monotonic
    ):
        self.check_period = check_period
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._last_sweep = clock()

    def _is_expired(self, expires_at: float, now: float) -> bool:
        return now >= expires_at

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.check_period:
            return

        expired = [k for k, (_, expires_at) in self._entries.items() if self._is_expired(expires_at, now)]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now

        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")

    async def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        self._sweep(now)

        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._is_expired(expires_at, now):
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        self._entries[key] = (copy.deepcopy(value), self._clock() + ttl)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def flush_all(self) -> None:
        self._entries.clear()

    async def keys(self) -> List[str]:
        now = self._clock()
        return [k for k, (_, expires_at) in self._entries.items() if not self._is_expired(expires_at, now)]


class RedisCacheBackend:
    """Redis-backed cache; values are stored as JSON under a key prefix."""

    def __init__(self, client: redis.Redis, key_prefix: str = "campus_attendance:"):
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "campus_attendance:") -> "RedisCacheBackend":
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def _physical_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(self._physical_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        await self.client.setex(self._physical_key(key), ttl, json.dumps(value))

    async def delete(self, key: str) -> bool:
        return bool(await self.client.delete(self._physical_key(key)))

    async def flush_all(self) -> None:
        # Only this service's keys; the Redis instance may be shared
        physical_keys = [k async for k in self.client.scan_iter(match=f"{self.key_prefix}*")]
        if physical_keys:
            await self.client.delete(*physical_keys)

    async def keys(self) -> List[str]:
        prefix_length = len(self.key_prefix)
        return [k[prefix_length:] async for k in self.client.scan_iter(match=f"{self.key_prefix}*")]

    async def close(self) -> None:
        await self.client.aclose()


def build_cache_backend() -> CacheBackend:
    """Select the cache backend from settings."""
    if settings.REDIS_ENABLED:
        logger.info(f"Using Redis query cache at {settings.REDIS_URL}")
        return RedisCacheBackend.from_url(settings.REDIS_URL)

    logger.info("Using in-memory query cache")
    return InMemoryCacheBackend(check_period=settings.CACHE_CHECK_PERIOD)
