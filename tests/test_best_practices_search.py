"""Best-practice search: knowledge base + cached research, fused and ranked."""

from datetime import timedelta

import pydantic
import pytest

from conftest import FailingCache, FailingKnowledgeSource, FakeResearchProvider, SlowKnowledgeSource

from template_advisor.core.exceptions import InputValidationError
from template_advisor.models import (
    BestPracticeFilters,
    BestPracticesRequest,
    KnowledgeSourceType,
    ResearchCacheEntry,
)
from template_advisor.services.best_practices_search import (
    BestPracticesSearch,
    map_cache_entry,
    map_knowledge_item,
    research_queries,
)
from template_advisor.services.cache_orchestrator import CacheOrchestrator
from template_advisor.services.knowledge_source import InMemoryKnowledgeSource
from template_advisor.utils.async_utils import drain_background_tasks
from template_advisor.utils.date_utils import get_current_utc

SEED = [
    {
        "id": "bp-1",
        "name": "Code Review Checklist",
        "description": "Structured code review for every pull request",
        "industry": "software",
        "processType": "development",
        "tags": ["quality"],
    },
    {
        "id": "bp-2",
        "name": "Sprint Planning",
        "description": "Plan the sprint backlog with the whole team",
        "industry": "software",
        "processType": "development",
    },
]


def _cached(query, title, score):
    now = get_current_utc()
    return ResearchCacheEntry(
        id=f"web-{title}",
        query=query,
        title=title,
        content=f"{title} explained",
        url="https://hbr.org/x",
        relevance_score=score,
        created_at=now,
        expires_at=now + timedelta(days=7),
    )


@pytest.fixture
def seeded_cache(research_cache):
    research_cache.store_batch([
        _cached("code review", "code review checklist", 0.95),
        _cached("code review", "Review automation", 0.7),
    ])
    return research_cache


def _request(**overrides):
    data = {"query": "code review", "user_id": "user-1"}
    data.update(overrides)
    return BestPracticesRequest(**data)


@pytest.mark.asyncio
async def test_fuses_knowledge_base_and_cache_with_kb_winning_duplicates(seeded_cache):
    provider = FakeResearchProvider()
    search = BestPracticesSearch(InMemoryKnowledgeSource(SEED), CacheOrchestrator(seeded_cache, provider))

    response = await search.execute(_request())
    await drain_background_tasks(timeout=1.0)

    assert [r.title for r in response.results] == [
        "Code Review Checklist",
        "Review automation",
        "Sprint Planning",
    ]
    assert response.results[0].source == KnowledgeSourceType.KNOWLEDGE_BASE
    assert response.results[0].relevance == 1.0
    assert response.results[1].source == KnowledgeSourceType.WEB_RESEARCH
    assert response.total_results == 3
    assert response.query == "code review"


@pytest.mark.asyncio
async def test_limit_truncates_but_total_counts_everything(seeded_cache):
    search = BestPracticesSearch(InMemoryKnowledgeSource(SEED), CacheOrchestrator(seeded_cache, None))
    response = await search.execute(_request(limit=1))
    assert len(response.results) == 1
    assert response.total_results == 3


@pytest.mark.asyncio
async def test_filters_apply_to_fused_results(seeded_cache):
    search = BestPracticesSearch(InMemoryKnowledgeSource(SEED), CacheOrchestrator(seeded_cache, None))
    response = await search.execute(_request(filters=BestPracticeFilters(industry="software", tags=["quality"])))
    # Web results carry no industry and drop out; the untagged KB record passes
    assert [r.id for r in response.results] == ["bp-1", "bp-2"]
    assert response.filters == {"industry": "software", "tags": ["quality"]}


@pytest.mark.asyncio
async def test_thin_results_schedule_background_research(research_cache):
    provider = FakeResearchProvider([{"title": "Review at scale", "content": "x", "url": "https://acm.org/r"}])
    search = BestPracticesSearch(InMemoryKnowledgeSource(SEED), CacheOrchestrator(research_cache, provider))

    await search.execute(_request(filters=BestPracticeFilters(industry="software", process_type="development")))
    await drain_background_tasks(timeout=1.0)

    assert [c["query"] for c in provider.calls] == [
        "code review",
        "code review software industry",
        "code review development process",
    ]
    assert [e.title for e in research_cache.lookup("code review", 10)] == ["Review at scale"]


@pytest.mark.asyncio
async def test_enough_results_skip_background_research(research_cache):
    seed = [{"id": f"bp-{i}", "name": f"Practice {i}", "description": "code review"} for i in range(5)]
    provider = FakeResearchProvider()
    search = BestPracticesSearch(InMemoryKnowledgeSource(seed), CacheOrchestrator(research_cache, provider))

    response = await search.execute(_request())
    await drain_background_tasks(timeout=1.0)

    assert response.total_results == 5
    assert provider.calls == []


@pytest.mark.asyncio
async def test_failing_knowledge_base_still_returns_cached_results(seeded_cache):
    search = BestPracticesSearch(FailingKnowledgeSource(), CacheOrchestrator(seeded_cache, None))
    response = await search.execute(_request())
    assert [r.title for r in response.results] == ["code review checklist", "Review automation"]


@pytest.mark.asyncio
async def test_slow_knowledge_base_is_dropped_after_timeout(seeded_cache):
    search = BestPracticesSearch(SlowKnowledgeSource(delay=1.0), CacheOrchestrator(seeded_cache, None), timeout=0.05)
    response = await search.execute(_request())
    assert all(r.source == KnowledgeSourceType.WEB_RESEARCH for r in response.results)
    assert response.total_results == 2


@pytest.mark.asyncio
async def test_every_source_failing_yields_empty_response():
    search = BestPracticesSearch(FailingKnowledgeSource(), CacheOrchestrator(FailingCache(), None))
    response = await search.execute(_request())
    assert response.results == []
    assert response.total_results == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"query": "   "}, "Query is required"),
        ({"user_id": ""}, "User ID is required"),
        ({"limit": 0}, "Limit must be greater than 0"),
    ],
)
async def test_invalid_requests_are_rejected_before_any_source_call(overrides, message, research_cache):
    provider = FakeResearchProvider()
    search = BestPracticesSearch(FailingKnowledgeSource(), CacheOrchestrator(research_cache, provider))
    with pytest.raises(InputValidationError) as exc:
        await search.execute(_request(**overrides))
    assert exc.value.message == message
    assert provider.calls == []


def test_research_queries_without_filters():
    assert research_queries("onboarding", BestPracticeFilters()) == ["onboarding"]


def test_citation_counts_survive_mapping():
    now = get_current_utc()
    entry = ResearchCacheEntry(
        id="c1",
        query="code review",
        title="Review study",
        author="A. Researcher",
        citations=150,
        created_at=now,
        expires_at=now + timedelta(days=7),
    )
    cached = map_cache_entry(entry)
    assert (cached.author, cached.citations) == ("A. Researcher", 150)
    assert cached.source == KnowledgeSourceType.WEB_RESEARCH

    seeded = map_knowledge_item({"id": "k", "name": "Pairing", "citations": 12}, "pairing")
    assert seeded.citations == 12
    assert map_knowledge_item({"id": "k2", "name": "Demo"}, "demo").citations is None


def test_records_are_frozen():
    record = map_knowledge_item({"id": "k", "name": "Pairing"}, "pairing")
    with pytest.raises(pydantic.ValidationError):
        record.relevance = 0.1
    assert record.model_copy(update={"relevance": 0.1}).relevance == 0.1
