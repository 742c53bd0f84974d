from .backends import CacheBackend, InMemoryCacheBackend, RedisCacheBackend, build_cache_backend
from .single_flight import SingleFlight
from .query_cache import QueryCache, CacheStats
from .invalidation import (
    ATTENDANCE_CACHE_PREFIXES,
    AttendanceWriteEvent,
    InvalidationStrategy,
    PrefixFlushInvalidation,
    CacheInvalidationHook,
)

__all__ = [
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "build_cache_backend",
    "SingleFlight",
    "QueryCache",
    "CacheStats",
    "ATTENDANCE_CACHE_PREFIXES",
    "AttendanceWriteEvent",
    "InvalidationStrategy",
    "PrefixFlushInvalidation",
    "CacheInvalidationHook",
]
