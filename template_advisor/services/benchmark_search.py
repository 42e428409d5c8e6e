"""
Process benchmark search.

Database benchmarks and web research (cached for 30 days) go through metric
extraction and normalization, confidence scoring, filter boosts and a
relevance x confidence ranking.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, List, Optional

import structlog

from ..core import config
from ..core.exceptions import InputValidationError
from ..models.base import BenchmarkOrigin, CompanySize, KnowledgeSourceType, MetricType
from ..models.knowledge import BenchmarkRecord, BenchmarkValues
from ..models.search import BenchmarkFilters, BenchmarkRequest, KnowledgeQuery, SearchResponse
from ..utils.async_utils import call_maybe_async
from ..utils.date_utils import get_current_utc
from ..utils.error_handling import guarded_source
from . import result_fusion
from .cache_orchestrator import CacheOrchestrator
from .confidence import benchmark_confidence, text_relevance
from .interfaces import KnowledgeSource
from .metric_normalizer import normalize_benchmark
from .record_mapping import enum_or_none, field_of, new_id, references_of, relevance_of, tags_of

logger = structlog.get_logger(__name__)


def validate_request(request: BenchmarkRequest) -> None:
    if not (request.query or "").strip():
        raise InputValidationError("Query is required")
    if not request.user_id:
        raise InputValidationError("User ID is required")
    if not request.filters.industry:
        raise InputValidationError("Industry filter is required for benchmark search")
    if not request.filters.process_type:
        raise InputValidationError("Process type filter is required for benchmark search")
    if request.limit is not None and request.limit < 1:
        raise InputValidationError("Limit must be greater than 0")


def cache_key(query: str, filters: BenchmarkFilters) -> str:
    metric = filters.metric_type.value if filters.metric_type else "all"
    return f"benchmark:{filters.industry}:{filters.process_type}:{metric}:{query}"


def research_query(query: str, filters: BenchmarkFilters, year: Optional[int] = None) -> str:
    parts = [query, f"{filters.industry} {filters.process_type} benchmarks KPI metrics"]
    if filters.metric_type:
        parts.append(filters.metric_type.value)
    if filters.company_size:
        parts.append(f"{filters.company_size.value} company")
    parts.append(f"{year or get_current_utc().year} statistics percentile median")
    return " ".join(parts)


def _benchmark_values(raw: Any) -> Optional[BenchmarkValues]:
    if raw is None:
        return None
    if isinstance(raw, BenchmarkValues):
        return raw
    try:
        return BenchmarkValues.model_validate(raw)
    except ValueError:
        return None


def map_benchmark(item: Any, origin: BenchmarkOrigin, query: str) -> BenchmarkRecord:
    title = field_of(item, "name", "title", default="Unnamed Benchmark")
    description = field_of(item, "description", "content", default="")
    relevance = relevance_of(item)
    if not relevance:
        relevance = text_relevance(f"{title} {description}", query)
    sample = field_of(item, "sample_size", "sampleSize")
    return BenchmarkRecord(
        id=str(field_of(item, "id", default=new_id("bench"))),
        title=title,
        description=description,
        category=field_of(item, "category", "metric_type", "metricType", default="general"),
        industry=field_of(item, "industry", default="general"),
        process_type=field_of(item, "process_type", "processType", default="general"),
        tags=tags_of(item),
        source=(
            KnowledgeSourceType.WEB_RESEARCH
            if origin == BenchmarkOrigin.WEB_RESEARCH
            else KnowledgeSourceType.KNOWLEDGE_BASE
        ),
        origin=origin,
        relevance=relevance,
        metric_unit=field_of(item, "metric_unit", "metricUnit", "unit", default="count"),
        metric_type=enum_or_none(MetricType, field_of(item, "metric_type", "metricType")),
        benchmark_values=_benchmark_values(field_of(item, "benchmark_values", "benchmarkValues")),
        sample_size=int(sample) if sample is not None else None,
        year=int(field_of(item, "year", default=get_current_utc().year)),
        company_size=enum_or_none(CompanySize, field_of(item, "company_size", "companySize")),
        region=field_of(item, "region"),
        methodology=field_of(item, "methodology"),
        references=references_of(item),
        url=field_of(item, "url"),
    )


def score_and_boost(
    records: List[BenchmarkRecord],
    filters: BenchmarkFilters,
    now: Optional[datetime] = None,
) -> List[BenchmarkRecord]:
    scored: List[BenchmarkRecord] = []
    for record in records:
        record = record.model_copy(update={"confidence": benchmark_confidence(record, now)})
        if filters.company_size and record.company_size == filters.company_size:
            record = result_fusion.boost(record, result_fusion.COMPANY_SIZE_BOOST)
        if filters.region and (record.region or "").upper() == filters.region.upper():
            record = result_fusion.boost(record, result_fusion.REGION_BOOST)
        scored.append(record)
    return scored


class BenchmarkSearch:
    def __init__(
        self,
        knowledge: KnowledgeSource,
        cache: CacheOrchestrator,
        timeout: Optional[float] = None,
    ) -> None:
        self.knowledge = knowledge
        self.cache = cache
        self.timeout = config.SOURCE_TIMEOUT_SECONDS if timeout is None else timeout

    async def execute(self, request: BenchmarkRequest) -> SearchResponse[BenchmarkRecord]:
        validate_request(request)
        filters = request.filters
        logger.info(
            "Searching process benchmarks",
            query=request.query,
            industry=filters.industry,
            process_type=filters.process_type,
        )

        database, reports = await asyncio.gather(
            guarded_source("benchmark_database", self._fetch_database, request, timeout=self.timeout),
            guarded_source("industry_reports", self._search_reports, request),
        )

        normalized = [normalize_benchmark(r) for r in list(database) + list(reports)]
        scored = score_and_boost(normalized, filters)
        ranked = result_fusion.rank_benchmarks(scored)
        page, total = result_fusion.paginate(ranked, request.limit)

        logger.info(
            "Benchmark search complete",
            query=request.query,
            database_results=len(database),
            report_results=len(reports),
            total_results=total,
        )
        return SearchResponse[BenchmarkRecord](
            query=request.query,
            results=page,
            total_results=total,
            filters=filters.model_dump(exclude_none=True, mode="json"),
        )

    async def _fetch_database(self, request: BenchmarkRequest) -> List[BenchmarkRecord]:
        filters = request.filters
        items = await call_maybe_async(
            self.knowledge.query,
            KnowledgeQuery(query=request.query, industry=filters.industry),
        )
        records = [map_benchmark(item, BenchmarkOrigin.INDUSTRY_REPORT, request.query) for item in items or []]
        return [r for r in records if result_fusion.matches_benchmark(r, filters)]

    async def _search_reports(self, request: BenchmarkRequest) -> List[BenchmarkRecord]:
        filters = request.filters
        entries = await self.cache.fetch_or_research(
            cache_key(request.query, filters),
            research_query(request.query, filters),
            config.BENCHMARK_RESEARCH_SOURCES,
            config.BENCHMARK_CACHE_TTL_DAYS,
            max_results=config.RESEARCH_MAX_RESULTS,
        )
        return [map_benchmark(e, BenchmarkOrigin.WEB_RESEARCH, request.query) for e in entries]
