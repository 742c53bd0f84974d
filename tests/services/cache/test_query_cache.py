"""Tests for the query cache."""

import asyncio
import pytest
from datetime import date
from unittest.mock import AsyncMock

from campus_attendance.models.class_record import Campus
from campus_attendance.services.cache.backends import InMemoryCacheBackend
from campus_attendance.services.cache.query_cache import QueryCache


@pytest.fixture
def cache():
    return QueryCache(InMemoryCacheBackend(), default_ttl=300)


class TestGenerateKey:
    """Cache key derivation."""

    def test_key_order_independence(self):
        first = QueryCache.generate_key("overview", {"campus": "Boys", "floor": "1st"})
        second = QueryCache.generate_key("overview", {"floor": "1st", "campus": "Boys"})

        assert first == second

    def test_key_is_namespaced(self):
        key = QueryCache.generate_key("overview", {"campus": "Boys"})

        assert key == 'overview:{"campus":"Boys"}'

    def test_unset_params_are_ignored(self):
        sparse = QueryCache.generate_key("overview", {"campus": "Boys"})
        padded = QueryCache.generate_key("overview", {"campus": "Boys", "floor": None, "classId": None})

        assert sparse == padded

    def test_empty_params(self):
        assert QueryCache.generate_key("overview", None) == "overview:{}"
        assert QueryCache.generate_key("overview", {}) == "overview:{}"

    def test_dates_and_enums_serialize_as_strings(self):
        key = QueryCache.generate_key("overview", {"startDate": date(2024, 3, 1), "campus": Campus.GIRLS})

        assert key == 'overview:{"campus":"Girls","startDate":"2024-03-01"}'

    def test_different_values_give_different_keys(self):
        boys = QueryCache.generate_key("overview", {"campus": "Boys"})
        girls = QueryCache.generate_key("overview", {"campus": "Girls"})

        assert boys != girls


class TestQueryCache:
    """Get/set/delete behaviour."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache):
        await cache.set("stats:a", {"total": 3})

        assert await cache.get("stats:a") == {"total": 3}

    @pytest.mark.asyncio
    async def test_missing_key_is_a_miss(self, cache):
        assert await cache.get("stats:missing") is None

    @pytest.mark.asyncio
    async def test_delete(self, cache):
        await cache.set("stats:a", 1)

        assert await cache.delete("stats:a") is True
        assert await cache.get("stats:a") is None
        assert await cache.delete("stats:a") is False

    @pytest.mark.asyncio
    async def test_flush_all(self, cache):
        await cache.set("stats:a", 1)
        await cache.set("other:b", 2)

        await cache.flush_all()

        assert await cache.get("stats:a") is None
        assert await cache.get("other:b") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, cache):
        await cache.set("overview:short", {"value": 1}, ttl=1)
        assert await cache.get("overview:short") == {"value": 1}

        await asyncio.sleep(1.1)

        assert await cache.get("overview:short") is None

    @pytest.mark.asyncio
    async def test_default_ttl_is_used(self):
        backend = AsyncMock()
        cache = QueryCache(backend, default_ttl=300)

        await cache.set("stats:a", 1)

        backend.set.assert_awaited_once_with("stats:a", 1, 300)

    @pytest.mark.asyncio
    async def test_delete_prefixes(self, cache):
        await cache.set("attendance:overview:{}", 1)
        await cache.set("stats:x", 2)
        await cache.set("students:list", 3)

        removed = await cache.delete_prefixes(("attendance:", "stats:"))

        assert removed == 2
        assert await cache.get("students:list") == 3

    @pytest.mark.asyncio
    async def test_stats(self, cache):
        await cache.set("stats:a", 1)
        await cache.get("stats:a")
        await cache.get("stats:b")

        stats = await cache.get_stats()

        assert stats.to_dict() == {"hits": 1, "misses": 1, "keys": 1}


class TestGetOrCompute:
    """Compute-on-miss with request coalescing."""

    @pytest.mark.asyncio
    async def test_computes_on_miss_and_stores(self, cache):
        compute = AsyncMock(return_value={"total": 5})

        first = await cache.get_or_compute("overview:{}", compute, ttl=60)
        second = await cache.get_or_compute("overview:{}", compute, ttl=60)

        assert first == second == {"total": 5}
        compute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_accepts_sync_compute_function(self, cache):
        result = await cache.get_or_compute("stats:sync", lambda: [1, 2, 3])

        assert result == [1, 2, 3]
        assert await cache.get("stats:sync") == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_concurrent_misses_compute_once(self, cache):
        calls = 0

        async def slow_compute():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return {"calls": calls}

        results = await asyncio.gather(
            *(cache.get_or_compute("overview:{}", slow_compute) for _ in range(5))
        )

        assert calls == 1
        assert all(r == {"calls": 1} for r in results)

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_is_not_cached(self, cache):
        async def failing_compute():
            await asyncio.sleep(0.01)
            raise RuntimeError("store unavailable")

        results = await asyncio.gather(
            cache.get_or_compute("overview:{}", failing_compute),
            cache.get_or_compute("overview:{}", failing_compute),
            return_exceptions=True
        )

        assert all(isinstance(r, RuntimeError) for r in results)
        assert await cache.get("overview:{}") is None

        # The key is released, so a later call computes again
        assert await cache.get_or_compute("overview:{}", AsyncMock(return_value=1)) == 1

    @pytest.mark.asyncio
    async def test_invalidation_during_compute(self, cache):
        release = asyncio.Event()
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            version = calls
            await release.wait()
            return {"version": version}

        before = asyncio.ensure_future(cache.get_or_compute("overview:{}", compute))
        await asyncio.sleep(0)

        removed = await cache.delete_prefixes(("overview:",))
        assert removed == 0

        after = asyncio.ensure_future(cache.get_or_compute("overview:{}", compute))
        await asyncio.sleep(0)
        release.set()

        assert await before == {"version": 1}
        assert await after == {"version": 2}
        assert calls == 2
        assert await cache.get("overview:{}") == {"version": 2}

    @pytest.mark.asyncio
    async def test_flush_during_compute_discards_result(self, cache):
        release = asyncio.Event()

        async def compute():
            await release.wait()
            return {"version": 1}

        pending = asyncio.ensure_future(cache.get_or_compute("overview:{}", compute))
        await asyncio.sleep(0)

        await cache.flush_all()
        release.set()

        assert await pending == {"version": 1}
        assert await cache.get("overview:{}") is None
