import json
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest

from template_advisor.models.knowledge import ResearchCacheEntry
from template_advisor.services.research_cache import (
    InMemoryResearchCache,
    RedisResearchCache,
    create_research_cache,
    normalize_query_key,
)
from template_advisor.utils.date_utils import get_current_utc


def _entry(entry_id, query="Invoice Approval", relevance=0.5, days=7):
    now = get_current_utc()
    return ResearchCacheEntry(
        id=entry_id,
        query=query,
        title=f"Result {entry_id}",
        relevance_score=relevance,
        created_at=now,
        expires_at=now + timedelta(days=days),
    )


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl


class FakeRedisCache(RedisResearchCache):
    def __init__(self):
        super().__init__(redis_url="redis://unused")
        self.client = FakeRedis()

    @asynccontextmanager
    async def get_client(self):
        yield self.client


def test_normalize_query_key_collapses_case_and_whitespace():
    assert normalize_query_key("  Invoice   APPROVAL ") == "invoice approval"
    assert normalize_query_key(None) == ""


def test_in_memory_lookup_orders_by_relevance_and_limits():
    cache = InMemoryResearchCache()
    cache.store_batch([_entry("a", relevance=0.4), _entry("b", relevance=0.9), _entry("c", relevance=0.6)])

    assert [e.id for e in cache.lookup("invoice  approval", 2)] == ["b", "c"]
    assert cache.lookup("something else", 5) == []
    assert len(cache.all_entries()) == 3


def test_create_research_cache_picks_backend():
    assert isinstance(create_research_cache("memory"), InMemoryResearchCache)
    assert isinstance(create_research_cache("REDIS"), RedisResearchCache)


def test_long_redis_keys_are_hashed():
    cache = RedisResearchCache(redis_url="redis://unused")
    assert cache._generate_cache_key("Invoice Approval") == "research:invoice approval"
    assert cache._generate_cache_key("x" * 300).startswith("research:hash:")


@pytest.mark.asyncio
async def test_redis_store_merges_batches_and_sets_ttl():
    cache = FakeRedisCache()
    await cache.store_batch([_entry("a", relevance=0.3, days=1)])
    await cache.store_batch([_entry("b", relevance=0.8, days=30)])

    entries = await cache.lookup("INVOICE approval", 10)
    assert [e.id for e in entries] == ["b", "a"]
    ttl = cache.client.ttls["research:invoice approval"]
    assert timedelta(days=29) < timedelta(seconds=ttl) <= timedelta(days=30)


@pytest.mark.asyncio
async def test_redis_store_drops_expired_entries_on_merge():
    cache = FakeRedisCache()
    expired = _entry("old", days=-1)
    cache.client.data["research:invoice approval"] = json.dumps([expired.model_dump(mode="json")])

    await cache.store_batch([_entry("new", days=3)])

    assert [e.id for e in await cache.lookup("invoice approval", 10)] == ["new"]
