"""
Plan read cache tests.

``InMemoryCache`` replaces only the Redis I/O of ``CacheManager`` so key
building, hit/miss accounting and invalidation run unchanged.
"""
import fnmatch

import pytest

from subscriptions import errors
from subscriptions.cache import CacheManager
from subscriptions.models import SubscriptionPlan
from subscriptions.services.database_service import DatabaseService
from subscriptions.services.plan_service import SubscriptionPlanService


class InMemoryCache(CacheManager):
    def __init__(self) -> None:
        super().__init__(url="redis://unused")
        self.store: dict[str, dict | list] = {}

    async def get(self, key):
        if key in self.store:
            self._hits += 1
            return self.store[key]
        self._misses += 1
        return None

    async def set(self, key, value, ttl=None):
        self.store[key] = value

    async def delete_pattern(self, pattern):
        for key in [k for k in self.store if fnmatch.fnmatch(k, pattern)]:
            del self.store[key]


@pytest.fixture
def memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def cached_plans(database: DatabaseService, memory_cache: InMemoryCache) -> SubscriptionPlanService:
    return SubscriptionPlanService(database, cache=memory_cache)


@pytest.mark.asyncio
async def test_find_one_is_served_from_cache(cached_plans, memory_cache, database):
    plan = await cached_plans.create({"name": "Pro Plan"})

    first = await cached_plans.find_one({"id": plan.id})
    assert memory_cache.stats["misses"] == 1

    # Change the row behind the service's back; the cached copy still wins.
    await database.update(SubscriptionPlan, {"description": "changed"}, {"id": plan.id})
    second = await cached_plans.find_one({"id": plan.id})
    assert memory_cache.stats["hits"] == 1
    assert second == first
    assert second.description is None


@pytest.mark.asyncio
async def test_find_all_is_cached_per_query(cached_plans, memory_cache):
    for i in range(3):
        await cached_plans.create({"name": f"Plan {i:02d}"})

    await cached_plans.find_all({"limit": 2, "skip": 0})
    await cached_plans.find_all({"limit": 2, "skip": 0})
    await cached_plans.find_all({"limit": 3, "skip": 0})
    assert memory_cache.stats["hits"] == 1
    assert memory_cache.stats["misses"] == 2
    assert CacheManager.plan_list_key({}, 2, 0) in memory_cache.store


@pytest.mark.asyncio
async def test_writes_invalidate_plan_cache(cached_plans, memory_cache):
    plan = await cached_plans.create({"name": "Pro Plan"})
    await cached_plans.find_one({"id": plan.id})
    await cached_plans.find_all()
    assert len(memory_cache.store) == 2

    updated = await cached_plans.update({"name": "Pro Plan Plus"}, {"id": plan.id})
    assert memory_cache.store == {}
    assert (await cached_plans.find_one({"id": plan.id})).slug == updated.edges[0].slug

    await cached_plans.delete({"id": plan.id})
    assert memory_cache.store == {}
    with pytest.raises(errors.NotFoundError):
        await cached_plans.find_one({"id": plan.id})


@pytest.mark.asyncio
async def test_not_found_is_not_cached(cached_plans, memory_cache):
    with pytest.raises(errors.NotFoundError):
        await cached_plans.find_one({"id": "missing"})
    with pytest.raises(errors.NotFoundError):
        await cached_plans.find_all()
    assert memory_cache.store == {}


@pytest.mark.asyncio
async def test_invalid_filter_skips_cache(cached_plans, memory_cache):
    with pytest.raises(errors.ValidationError):
        await cached_plans.find_all({"skip": -1})
    assert memory_cache.stats["misses"] == 0


@pytest.mark.asyncio
async def test_disconnected_manager_is_a_no_op():
    manager = CacheManager(url="redis://unused")
    assert manager.enabled is False
    assert await manager.get("plans:detail:x") is None
    await manager.set("plans:detail:x", {"id": "x"})
    await manager.invalidate_plans()
    assert manager.stats == {"hits": 0, "misses": 1, "hit_rate": 0.0}
