from pydantic import BaseModel
from datetime import date
from typing import Optional, Dict, Any

from campus_attendance.schemas.attendance import CamelModel


class OverviewResponse(BaseModel):
    success: bool
    data: Dict[str, Any]


class ClassStatsResponse(CamelModel):
    success: bool
    class_id: int
    period: Dict[str, Optional[date]]
    stats: Dict[str, int]


class CacheStatsResponse(BaseModel):
    hits: int
    misses: int
    keys: int


class CacheFlushResponse(BaseModel):
    success: bool
    message: str
