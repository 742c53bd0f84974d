"""
Attendance overview assembled from the statistics aggregator and cached per
filter combination.
"""
import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from campus_attendance.core.config import settings
from campus_attendance.services.cache.query_cache import QueryCache
from campus_attendance.services.stats_aggregator import StatsAggregator


logger = logging.getLogger(__name__)


OVERVIEW_NAMESPACE = "overview"
ALL_TIME = "All time"


class OverviewOrchestrator:
    """
    Builds the composite attendance overview.

    Filtered overviews (campus, floor, program or class) are cached for
    ``filtered_ttl`` seconds, the unfiltered overview for ``unfiltered_ttl``.
    """

    def __init__(
        self,
        aggregator: StatsAggregator,
        cache: QueryCache,
        filtered_ttl: Optional[int] = None,
        unfiltered_ttl: Optional[int] = None
    ):
        self.aggregator = aggregator
        self.cache = cache
        self.filtered_ttl = filtered_ttl if filtered_ttl is not None else settings.OVERVIEW_FILTERED_TTL
        self.unfiltered_ttl = unfiltered_ttl if unfiltered_ttl is not None else settings.OVERVIEW_UNFILTERED_TTL

    @staticmethod
    def cache_key(
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        campus: Optional[str] = None,
        floor: Optional[str] = None,
        program: Optional[str] = None,
        class_id: Optional[int] = None
    ) -> str:
        return QueryCache.generate_key(OVERVIEW_NAMESPACE, {
            "startDate": start_date,
            "endDate": end_date,
            "campus": campus,
            "floor": floor,
            "program": program,
            "classId": class_id,
        })

    def ttl_for(
        self,
        campus: Optional[str] = None,
        floor: Optional[str] = None,
        program: Optional[str] = None,
        class_id: Optional[int] = None
    ) -> int:
        if campus or floor or program or class_id is not None:
            return self.filtered_ttl
        return self.unfiltered_ttl

    async def get_optimized_overview(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        campus: Optional[str] = None,
        floor: Optional[str] = None,
        program: Optional[str] = None,
        class_id: Optional[int] = None,
        use_cache: bool = True
    ) -> Dict[str, Any]:
        async def compute():
            return await self._compute_overview(start_date, end_date, campus, floor, program, class_id)

        if not use_cache:
            logger.debug("Computing fresh attendance overview (cache bypassed)")
            return await compute()

        key = self.cache_key(start_date, end_date, campus, floor, program, class_id)
        ttl = self.ttl_for(campus, floor, program, class_id)
        return await self.cache.get_or_compute(key, compute, ttl)

    async def _compute_overview(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        campus: Optional[str],
        floor: Optional[str],
        program: Optional[str],
        class_id: Optional[int]
    ) -> Dict[str, Any]:
        logger.info("Computing fresh attendance overview")

        basic, by_campus, by_floor, by_program, by_class = await asyncio.gather(
            self.aggregator.compute_basic_stats(start_date, end_date),
            self.aggregator.compute_campus_breakdown(start_date, end_date),
            self.aggregator.compute_floor_breakdown(start_date, end_date),
            self.aggregator.compute_program_breakdown(start_date, end_date),
            self.aggregator.compute_class_breakdown(
                start_date, end_date,
                campus=campus, floor=floor, program=program, class_id=class_id
            )
        )

        return {
            **basic,
            "campusBreakdown": by_campus,
            "floorBreakdown": by_floor,
            "programBreakdown": by_program,
            "classBreakdown": by_class,
            "dateRange": {
                "startDate": start_date.isoformat() if start_date else ALL_TIME,
                "endDate": end_date.isoformat() if end_date else ALL_TIME,
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
