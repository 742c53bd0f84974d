from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_attendance.repositories.attendance_store import SQLAttendanceRecordStore
from campus_attendance.repositories.class_catalog import SQLClassCatalog
from campus_attendance.services.attendance_marking import AttendanceMarkingService
from campus_attendance.services.cache.backends import CacheBackend, build_cache_backend
from campus_attendance.services.cache.invalidation import CacheInvalidationHook, InvalidationStrategy
from campus_attendance.services.cache.query_cache import QueryCache
from campus_attendance.services.overview_service import OverviewOrchestrator
from campus_attendance.services.stats_aggregator import StatsAggregator


@dataclass(frozen=True)
class Container:
    records: SQLAttendanceRecordStore
    classes: SQLClassCatalog

    cache: QueryCache
    invalidation_hook: CacheInvalidationHook

    aggregator: StatsAggregator
    overview: OverviewOrchestrator
    marking: AttendanceMarkingService


def build_container(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    cache_backend: Optional[CacheBackend] = None,
    invalidation_strategy: Optional[InvalidationStrategy] = None
) -> Container:
    records = SQLAttendanceRecordStore(session_factory)
    classes = SQLClassCatalog(session_factory)

    cache = QueryCache(cache_backend or build_cache_backend())
    invalidation_hook = CacheInvalidationHook(cache, invalidation_strategy)

    aggregator = StatsAggregator(records, classes)
    overview = OverviewOrchestrator(aggregator, cache)
    marking = AttendanceMarkingService(records, classes, invalidation_hook)

    return Container(
        records=records,
        classes=classes,
        cache=cache,
        invalidation_hook=invalidation_hook,
        aggregator=aggregator,
        overview=overview,
        marking=marking,
    )
