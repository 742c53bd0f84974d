"""
Query cache used by the analytics services.

Keys are built from a namespace and a parameter mapping so that the same
filters always map to the same entry regardless of the order they were given.
"""
import inspect
import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Union

from campus_attendance.core.config import settings
from campus_attendance.services.cache.backends import CacheBackend, InMemoryCacheBackend
from campus_attendance.services.cache.single_flight import SingleFlight


logger = logging.getLogger(__name__)


ComputeFn = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    keys: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class QueryCache:
    """TTL cache over a pluggable backend with single-flight computation."""

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        default_ttl: Optional[int] = None
    ):
        self.backend = backend or InMemoryCacheBackend(check_period=settings.CACHE_CHECK_PERIOD)
        self.default_ttl = default_ttl if default_ttl is not None else settings.CACHE_DEFAULT_TTL
        self._single_flight = SingleFlight()
        self._hits = 0
        self._misses = 0
        # Bumped by every invalidation; results computed under an older
        # generation are returned to their callers but never stored
        self._generation = 0

    @staticmethod
    def generate_key(namespace: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Build a canonical cache key.

        Parameters set to None are left out, the rest are serialized as compact
        JSON with sorted keys. Dates and enums serialize as their string form.
        """
        canonical = {k: v for k, v in (params or {}).items() if v is not None}
        encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=_encode_key_value)
        return f"{namespace}:{encoded}"

    async def get(self, key: str) -> Optional[Any]:
        value = await self.backend.get(key)
        if value is None:
            self._misses += 1
        else:
            self._hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        await self.backend.set(key, value, self.default_ttl if ttl is None else ttl)

    async def delete(self, key: str) -> bool:
        return await self.backend.delete(key)

    async def flush_all(self) -> None:
        self._generation += 1
        await self.backend.flush_all()
        logger.info("Query cache flushed")

    async def delete_prefixes(self, prefixes: Iterable[str]) -> int:
        """Delete every key starting with one of ``prefixes``; returns the count."""
        prefixes = tuple(prefixes)
        self._generation += 1
        matching = [key for key in await self.backend.keys() if key.startswith(prefixes)]
        for key in matching:
            await self.backend.delete(key)
        return len(matching)

    async def get_or_compute(self, key: str, compute_fn: ComputeFn, ttl: Optional[int] = None) -> Any:
        """
        Return the cached value for ``key`` or compute and store it.

        Concurrent misses on the same key share one computation. If the
        computation raises, every waiter sees the exception and nothing is
        stored.

        A computation started before an invalidation is neither stored nor
        shared with callers arriving after it; those start a fresh one.
        """
        value = await self.get(key)
        if value is not None:
            logger.debug(f"Cache hit for key: {key}")
            return value

        logger.debug(f"Cache miss for key: {key}")
        generation = self._generation

        async def compute_and_store():
            result = compute_fn()
            if inspect.isawaitable(result):
                result = await result
            if generation == self._generation:
                await self.set(key, result, ttl)
            else:
                logger.debug(f"Discarding result for key {key} computed before an invalidation")
            return result

        return await self._single_flight.do(f"{key}#{generation}", compute_and_store)

    async def get_stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, keys=len(await self.backend.keys()))


def _encode_key_value(value: Any) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)
