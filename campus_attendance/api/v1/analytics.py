"""
Analytics API endpoints for the cached attendance overview and per-class stats.
"""
import logging
from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query

from campus_attendance.api.deps import get_container, domain_http_error, internal_http_error
from campus_attendance.container import Container
from campus_attendance.core.exceptions import AttendanceAnalyticsError
from campus_attendance.schemas.analytics import (
    OverviewResponse, ClassStatsResponse, CacheStatsResponse, CacheFlushResponse
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/attendance/overview", response_model=OverviewResponse)
async def get_attendance_overview(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    campus: Optional[str] = Query(default=None),
    floor: Optional[str] = Query(default=None),
    program: Optional[str] = Query(default=None),
    class_id: Optional[int] = Query(default=None, alias="classId"),
    fresh: bool = Query(default=False, description="Bypass the cache"),
    container: Container = Depends(get_container)
):
    """
    Attendance overview with campus, floor, program and class breakdowns.
    Results are cached per filter combination unless ``fresh`` is set.
    """
    try:
        data = await container.overview.get_optimized_overview(
            start_date=start_date,
            end_date=end_date,
            campus=campus,
            floor=floor,
            program=program,
            class_id=class_id,
            use_cache=not fresh
        )
        return OverviewResponse(success=True, data=data)

    except AttendanceAnalyticsError as e:
        raise domain_http_error(e)
    except Exception as e:
        logger.error(f"Error in attendance overview: {e}")
        raise internal_http_error("get attendance overview", e)


@router.get("/attendance/class/{class_id}/stats", response_model=ClassStatsResponse)
async def get_class_attendance_stats(
    class_id: int,
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    container: Container = Depends(get_container)
):
    """Present/absent/late counts for one class; late counts as attended."""
    try:
        stats = await container.aggregator.compute_class_stats(class_id, start_date, end_date)
        return ClassStatsResponse(
            success=True,
            class_id=class_id,
            period={"startDate": start_date, "endDate": end_date},
            stats=stats
        )

    except AttendanceAnalyticsError as e:
        raise domain_http_error(e)
    except Exception as e:
        logger.error(f"Error getting attendance statistics for class {class_id}: {e}")
        raise internal_http_error("get attendance statistics", e)


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(container: Container = Depends(get_container)):
    stats = await container.cache.get_stats()
    return CacheStatsResponse(**stats.to_dict())


@router.delete("/cache", response_model=CacheFlushResponse)
async def flush_cache(container: Container = Depends(get_container)):
    try:
        await container.cache.flush_all()
        return CacheFlushResponse(success=True, message="All cache cleared")
    except Exception as e:
        raise internal_http_error("clear cache", e)
