"""Tests for write-triggered cache invalidation."""

import pytest
from datetime import date
from unittest.mock import AsyncMock

from campus_attendance.services.cache.backends import InMemoryCacheBackend
from campus_attendance.services.cache.invalidation import (
    AttendanceWriteEvent, CacheInvalidationHook, PrefixFlushInvalidation, ATTENDANCE_CACHE_PREFIXES
)
from campus_attendance.services.cache.query_cache import QueryCache


@pytest.fixture
def cache():
    return QueryCache(InMemoryCacheBackend())


@pytest.fixture
def event():
    return AttendanceWriteEvent(
        source="bulk_mark",
        class_ids=frozenset({1}),
        student_ids=frozenset({10, 11}),
        dates=frozenset({date(2024, 3, 4)})
    )


class TestPrefixFlushInvalidation:

    def test_default_prefixes(self):
        assert PrefixFlushInvalidation().prefixes == ("attendance:", "stats:", "overview:")
        assert ATTENDANCE_CACHE_PREFIXES == ("attendance:", "stats:", "overview:")

    @pytest.mark.asyncio
    async def test_flushes_attendance_namespaces_only(self, cache, event):
        await cache.set(QueryCache.generate_key("overview", {"campus": "Boys"}), {"a": 1})
        await cache.set(QueryCache.generate_key("overview", {}), {"a": 2})
        await cache.set("attendance:overview:{}", {"a": 3})
        await cache.set("stats:class:1", {"a": 4})
        await cache.set("timetable:week", {"a": 5})

        removed = await PrefixFlushInvalidation().invalidate(cache, event)

        assert removed == 4
        assert await cache.backend.keys() == ["timetable:week"]


class TestCacheInvalidationHook:

    @pytest.mark.asyncio
    async def test_uses_prefix_flush_by_default(self, cache, event):
        await cache.set("overview:{}", {"a": 1})
        hook = CacheInvalidationHook(cache)

        assert await hook(event) == 1
        assert await cache.get("overview:{}") is None

    @pytest.mark.asyncio
    async def test_delegates_to_custom_strategy(self, cache, event):
        strategy = AsyncMock()
        strategy.invalidate.return_value = 0
        await cache.set("overview:{}", {"a": 1})

        hook = CacheInvalidationHook(cache, strategy)
        cleared = await hook(event)

        assert cleared == 0
        strategy.invalidate.assert_awaited_once_with(cache, event)
        assert await cache.get("overview:{}") == {"a": 1}
