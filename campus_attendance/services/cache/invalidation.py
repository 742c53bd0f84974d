"""
Cache invalidation triggered by attendance writes.

The write paths describe what they changed with an ``AttendanceWriteEvent`` and
hand it to ``CacheInvalidationHook``. The hook delegates to an
``InvalidationStrategy``; the default one drops every attendance-related
namespace, which keeps reads fresh at the cost of discarding unrelated entries.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Optional, Protocol, Tuple

from campus_attendance.services.cache.query_cache import QueryCache


logger = logging.getLogger(__name__)


ATTENDANCE_CACHE_PREFIXES: Tuple[str, ...] = ("attendance:", "stats:", "overview:")


@dataclass(frozen=True)
class AttendanceWriteEvent:
    """What a persisted attendance write touched."""
    source: str
    class_ids: FrozenSet[int] = field(default_factory=frozenset)
    student_ids: FrozenSet[int] = field(default_factory=frozenset)
    dates: FrozenSet[date] = field(default_factory=frozenset)


class InvalidationStrategy(Protocol):
    async def invalidate(self, cache: QueryCache, event: AttendanceWriteEvent) -> int:
        """Remove stale entries for ``event``; returns how many were removed."""
        ...


class PrefixFlushInvalidation:
    """Drops every entry under the given namespace prefixes."""

    def __init__(self, prefixes: Tuple[str, ...] = ATTENDANCE_CACHE_PREFIXES):
        self.prefixes = prefixes

    async def invalidate(self, cache: QueryCache, event: AttendanceWriteEvent) -> int:
        return await cache.delete_prefixes(self.prefixes)


class CacheInvalidationHook:
    def __init__(self, cache: QueryCache, strategy: Optional[InvalidationStrategy] = None):
        self.cache = cache
        self.strategy = strategy or PrefixFlushInvalidation()

    async def __call__(self, event: AttendanceWriteEvent) -> int:
        cleared = await self.strategy.invalidate(self.cache, event)
        logger.info(f"Cleared {cleared} attendance cache entries after {event.source}")
        return cleared
