"""
Best-practice search: knowledge base + cached web research, fused and ranked.

When the fused result set is thin, research for a few query variants is
scheduled in the background so later searches find it in the cache.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import structlog

from ..core import config
from ..core.exceptions import InputValidationError
from ..models.base import Complexity, KnowledgeSourceType
from ..models.knowledge import KnowledgeRecord, ResearchCacheEntry
from ..models.search import BestPracticeFilters, BestPracticesRequest, KnowledgeQuery, SearchResponse
from ..utils.date_utils import safe_parse_date
from ..utils.async_utils import call_maybe_async
from ..utils.error_handling import guarded_source
from . import result_fusion
from .cache_orchestrator import CacheOrchestrator
from .confidence import text_relevance
from .interfaces import KnowledgeSource
from .record_mapping import count_of, enum_or_none, field_of, new_id, relevance_of, tags_of

logger = structlog.get_logger(__name__)


def validate_request(request: BestPracticesRequest) -> None:
    if not (request.query or "").strip():
        raise InputValidationError("Query is required")
    if not request.user_id:
        raise InputValidationError("User ID is required")
    if request.limit is not None and request.limit < 1:
        raise InputValidationError("Limit must be greater than 0")


def research_queries(query: str, filters: BestPracticeFilters) -> List[str]:
    queries = [query]
    if filters.industry:
        queries.append(f"{query} {filters.industry} industry")
    if filters.process_type:
        queries.append(f"{query} {filters.process_type} process")
    return queries


def map_knowledge_item(item: Any, query: str) -> KnowledgeRecord:
    title = field_of(item, "name", "title", default="Untitled")
    description = field_of(item, "description", "content", default="")
    return KnowledgeRecord(
        id=str(field_of(item, "id", default=new_id("bp"))),
        title=title,
        description=description,
        category=field_of(item, "category", default="best_practice"),
        industry=field_of(item, "industry"),
        process_type=field_of(item, "process_type", "processType"),
        complexity=enum_or_none(Complexity, field_of(item, "complexity")),
        tags=tags_of(item),
        source=KnowledgeSourceType.KNOWLEDGE_BASE,
        relevance=text_relevance(f"{title} {description}", query),
        published_at=safe_parse_date(field_of(item, "published_at", "publishedAt", "created_at", "createdAt")),
        url=field_of(item, "url"),
        author=field_of(item, "author"),
        citations=count_of(item, "citations"),
    )


def map_cache_entry(entry: ResearchCacheEntry) -> KnowledgeRecord:
    relevance = relevance_of(entry)
    return KnowledgeRecord(
        id=entry.id,
        title=entry.title,
        description=entry.content,
        category="best_practice",
        source=KnowledgeSourceType.WEB_RESEARCH,
        relevance=relevance if relevance else 0.5,
        published_at=entry.created_at,
        url=entry.url or None,
        author=entry.author,
        citations=entry.citations,
    )


class BestPracticesSearch:
    def __init__(
        self,
        knowledge: KnowledgeSource,
        cache: CacheOrchestrator,
        timeout: Optional[float] = None,
    ) -> None:
        self.knowledge = knowledge
        self.cache = cache
        self.timeout = config.SOURCE_TIMEOUT_SECONDS if timeout is None else timeout

    async def execute(self, request: BestPracticesRequest) -> SearchResponse[KnowledgeRecord]:
        validate_request(request)
        filters = request.filters
        logger.info("Searching best practices", query=request.query, user_id=request.user_id)

        kb_results, cache_lookup = await asyncio.gather(
            self._search_knowledge_base(request),
            self.cache.lookup(request.query, config.CACHE_LOOKUP_LIMIT),
        )
        cached_results = [map_cache_entry(e) for e in cache_lookup.entries]

        if len(kb_results) + len(cached_results) < config.BEST_PRACTICES_MIN_RESULTS:
            self.cache.schedule_background_research(
                research_queries(request.query, filters),
                config.BEST_PRACTICES_RESEARCH_SOURCES,
                config.BEST_PRACTICES_RESEARCH_MAX_RESULTS,
                config.BEST_PRACTICES_CACHE_TTL_DAYS,
            )

        fused = result_fusion.merge_sources(kb_results, cached_results, stage="best_practices")
        filtered = [r for r in fused if result_fusion.matches_best_practice(r, filters)]
        ranked = result_fusion.rank_by_relevance(filtered)
        page, total = result_fusion.paginate(ranked, request.limit)

        logger.info(
            "Best practices search complete",
            query=request.query,
            knowledge_results=len(kb_results),
            cached_results=len(cached_results),
            total_results=total,
            returned=len(page),
        )
        return SearchResponse[KnowledgeRecord](
            query=request.query,
            results=page,
            total_results=total,
            filters=filters.model_dump(exclude_none=True, mode="json"),
        )

    async def _search_knowledge_base(self, request: BestPracticesRequest) -> List[KnowledgeRecord]:
        return await guarded_source("knowledge_base", self._fetch_knowledge, request, timeout=self.timeout)

    async def _fetch_knowledge(self, request: BestPracticesRequest) -> List[KnowledgeRecord]:
        filters = request.filters
        items = await call_maybe_async(
            self.knowledge.query,
            KnowledgeQuery(
                query=request.query,
                industry=filters.industry,
                process_type=filters.process_type,
                complexity=filters.complexity,
            ),
        )
        return [map_knowledge_item(item, request.query) for item in items or []]
