"""Research cache orchestration: hit/miss, live research write-back and
fire-and-forget background refresh."""

import asyncio
from datetime import timedelta

import pytest

from conftest import FailingCache, FakeResearchProvider

from template_advisor.models import ResearchCacheEntry, ResearchSource
from template_advisor.services.cache_orchestrator import (
    CacheOrchestrator,
    CacheState,
    classify_source,
    to_cache_entries,
)
from template_advisor.utils.async_utils import drain_background_tasks
from template_advisor.utils.date_utils import get_current_utc

RESULTS = [
    {"title": "Lean approvals", "content": "Cut approval layers", "url": "https://hbr.org/lean", "relevance": 0.9},
    {"title": "Approval SLAs", "content": "Set response targets", "url": "https://docs.example.com/sla", "relevance": 0.6},
    {"title": "", "content": "untitled results are skipped", "url": "https://x.com"},
]


def _entry(query, title, expires_in_days=1, score=0.5):
    now = get_current_utc()
    return ResearchCacheEntry(
        id=title,
        query=query,
        title=title,
        relevance_score=score,
        created_at=now,
        expires_at=now + timedelta(days=expires_in_days),
    )


@pytest.mark.parametrize(
    "url, source",
    [
        ("https://github.com/org/repo", ResearchSource.GITHUB),
        ("https://stackoverflow.com/q/1", ResearchSource.STACKOVERFLOW),
        ("https://docs.python.org/3/", ResearchSource.DOCUMENTATION),
        ("https://hbr.org/article", ResearchSource.WEB),
        ("", ResearchSource.OTHER),
    ],
)
def test_classify_source(url, source):
    assert classify_source(url) == source


def test_to_cache_entries_sets_ttl_and_skips_untitled():
    now = get_current_utc()
    entries = to_cache_entries("approvals", RESULTS, ttl_days=7, now=now)
    assert [e.title for e in entries] == ["Lean approvals", "Approval SLAs"]
    assert all(e.expires_at == now + timedelta(days=7) for e in entries)
    assert entries[0].relevance_score == 0.9
    assert entries[1].source == ResearchSource.DOCUMENTATION


@pytest.mark.asyncio
async def test_lookup_hit_drops_expired_entries(research_cache, orchestrator):
    research_cache.store_batch([
        _entry("approvals", "fresh"),
        _entry("approvals", "stale", expires_in_days=-1),
    ])
    lookup = await orchestrator.lookup("Approvals")
    assert lookup.state == CacheState.HIT
    assert [e.title for e in lookup.entries] == ["fresh"]


@pytest.mark.asyncio
async def test_lookup_with_only_expired_entries_is_a_miss(research_cache, orchestrator):
    research_cache.store_batch([_entry("approvals", "stale", expires_in_days=-1)])
    lookup = await orchestrator.lookup("approvals")
    assert lookup.state == CacheState.MISS
    assert not lookup.hit


@pytest.mark.asyncio
async def test_fetch_or_research_researches_and_caches_on_miss(research_cache):
    provider = FakeResearchProvider(RESULTS)
    orchestrator = CacheOrchestrator(research_cache, provider)

    first = await orchestrator.fetch_or_research("k", "approval workflow", ["industry_reports"], ttl_days=30)
    assert [e.title for e in first] == ["Lean approvals", "Approval SLAs"]
    assert len(provider.calls) == 1
    assert provider.calls[0]["query"] == "approval workflow"

    second = await orchestrator.fetch_or_research("k", "approval workflow", ["industry_reports"], ttl_days=30)
    assert [e.title for e in second] == ["Lean approvals", "Approval SLAs"]
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_fetch_or_research_without_provider_returns_nothing(research_cache):
    orchestrator = CacheOrchestrator(research_cache, None)
    assert await orchestrator.fetch_or_research("k", "q", [], ttl_days=7) == []


@pytest.mark.asyncio
async def test_failing_provider_contributes_nothing(research_cache):
    orchestrator = CacheOrchestrator(research_cache, FakeResearchProvider(fail=True))
    assert await orchestrator.fetch_or_research("k", "q", [], ttl_days=7) == []
    assert research_cache.all_entries() == []


@pytest.mark.asyncio
async def test_failing_cache_degrades_to_miss():
    provider = FakeResearchProvider(RESULTS)
    orchestrator = CacheOrchestrator(FailingCache(), provider)
    lookup = await orchestrator.lookup("anything")
    assert lookup.state == CacheState.MISS
    # Research still flows even though the write-back fails
    entries = await orchestrator.fetch_or_research("k", "q", [], ttl_days=7)
    assert len(entries) == 2


@pytest.mark.asyncio
async def test_background_research_caches_each_query(research_cache):
    provider = FakeResearchProvider(RESULTS)
    orchestrator = CacheOrchestrator(research_cache, provider)

    task = orchestrator.schedule_background_research(["q1", "q2"], ["blogs"], 5, ttl_days=7)
    assert task is not None
    stored = await task
    assert stored == 4
    assert [c["query"] for c in provider.calls] == ["q1", "q2"]
    assert len(research_cache.lookup("q1", 10)) == 2
    assert len(research_cache.lookup("q2", 10)) == 2


@pytest.mark.asyncio
async def test_background_failure_is_logged_not_raised(research_cache):
    orchestrator = CacheOrchestrator(research_cache, FakeResearchProvider(fail=True))
    task = orchestrator.schedule_background_research(["q1"], [], 5, ttl_days=7)
    assert await task == 0


@pytest.mark.asyncio
async def test_background_research_outlives_the_caller(research_cache):
    class SlowProvider(FakeResearchProvider):
        async def research(self, query, sources, max_results):
            await asyncio.sleep(0.05)
            return await super().research(query, sources, max_results)

    orchestrator = CacheOrchestrator(research_cache, SlowProvider(RESULTS))

    async def request_handler():
        orchestrator.schedule_background_research(["slow"], [], 5, ttl_days=7)
        return "done"

    assert await asyncio.wait_for(request_handler(), timeout=0.01) == "done"
    await drain_background_tasks(timeout=1.0)
    assert len(research_cache.lookup("slow", 10)) == 2


@pytest.mark.asyncio
async def test_hung_background_research_is_bounded(research_cache):
    class HangingProvider(FakeResearchProvider):
        async def research(self, query, sources, max_results):
            if query == "hangs":
                await asyncio.sleep(30)
            return await super().research(query, sources, max_results)

    orchestrator = CacheOrchestrator(research_cache, HangingProvider(RESULTS), timeout=0.05)
    task = orchestrator.schedule_background_research(["hangs", "fine"], [], 5, ttl_days=7)

    stored = await asyncio.wait_for(task, timeout=2.0)
    assert stored == 2
    assert research_cache.lookup("hangs", 10) == []
    assert len(research_cache.lookup("fine", 10)) == 2

def test_no_background_work_without_provider_or_queries(research_cache):
    assert CacheOrchestrator(research_cache, None).schedule_background_research(["q"], [], 5, 7) is None
    assert CacheOrchestrator(research_cache, FakeResearchProvider()).schedule_background_research([], [], 5, 7) is None


def test_to_cache_entries_keeps_author_and_citation_count():
    results = [
        {"title": "Approval study", "author": "J. Doe", "citations": "42"},
        {"title": "Blog post", "citations": -3},
    ]
    entries = to_cache_entries("approvals", results, ttl_days=7)
    assert (entries[0].author, entries[0].citations) == ("J. Doe", 42)
    assert entries[1].citations is None
