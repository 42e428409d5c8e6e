"""
Compliance requirement search.

Combines the regulatory knowledge base with web research (cached for a
week) and ranks requirements by severity, then by the nearest compliance
deadline, then by relevance.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, List, Optional

import structlog

from ..core import config
from ..core.exceptions import InputValidationError
from ..models.base import ComplianceOrigin, ComplianceSeverity, KnowledgeSourceType
from ..models.knowledge import ComplianceRecord
from ..models.search import ComplianceFilters, ComplianceRequest, KnowledgeQuery, SearchResponse
from ..utils.async_utils import call_maybe_async
from ..utils.date_utils import get_current_utc, safe_parse_date
from ..utils.error_handling import guarded_source
from . import result_fusion
from .cache_orchestrator import CacheOrchestrator
from .confidence import compliance_confidence, text_relevance
from .credibility import GOVERNMENT_SCORE, check_source_credibility
from .interfaces import KnowledgeSource
from .record_mapping import enum_or_none, field_of, new_id, references_of, relevance_of, tags_of

logger = structlog.get_logger(__name__)

VALID_REGIONS = frozenset({"US", "EU", "JP", "UK", "CA", "AU", "SG", "GLOBAL"})

CONFIDENCE_THRESHOLD = 0.6
MAX_REQUIRED_ACTIONS = 5

_SEVERITY_KEYWORDS = (
    (ComplianceSeverity.CRITICAL, ("critical", "mandatory", "must")),
    (ComplianceSeverity.HIGH, ("high", "important", "required")),
    (ComplianceSeverity.MEDIUM, ("medium", "should")),
)
_ACTION_PATTERN = re.compile(r"must|shall|require|need to|should", re.IGNORECASE)

CATEGORY_QUERY_HINTS = {
    "data-privacy": "data protection privacy GDPR",
    "security": "security standards ISO27001 SOC2",
}


def validate_request(request: ComplianceRequest) -> None:
    if not (request.query or "").strip():
        raise InputValidationError("Query is required")
    if not request.user_id:
        raise InputValidationError("User ID is required")
    filters = request.filters
    if not filters.industry:
        raise InputValidationError("Industry filter is required for compliance search")
    if filters.region and filters.region.upper() not in VALID_REGIONS:
        raise InputValidationError("Invalid region code. Use ISO 3166 format (e.g., US, EU, JP)")
    if request.limit is not None and request.limit < 1:
        raise InputValidationError("Limit must be greater than 0")


def cache_key(query: str, filters: ComplianceFilters) -> str:
    return f"compliance:{filters.industry}:{filters.region or 'all'}:{filters.category or 'all'}:{query}"


def research_query(query: str, filters: ComplianceFilters, year: Optional[int] = None) -> str:
    parts = [query]
    if filters.industry:
        parts.append(f"{filters.industry} compliance requirements")
    if filters.region:
        parts.append(f"{filters.region} regulations")
    hint = CATEGORY_QUERY_HINTS.get(filters.category or "")
    if hint:
        parts.append(hint)
    parts.append(str(year or get_current_utc().year))
    return " ".join(parts)


def extract_severity(item: Any) -> ComplianceSeverity:
    explicit = enum_or_none(ComplianceSeverity, field_of(item, "severity"))
    if explicit:
        return explicit
    text = f"{field_of(item, 'name', 'title', default='')} {field_of(item, 'description', 'content', default='')}".lower()
    for severity, words in _SEVERITY_KEYWORDS:
        if any(w in text for w in words):
            return severity
    return ComplianceSeverity.LOW


def extract_required_actions(item: Any) -> List[str]:
    explicit = field_of(item, "required_actions", "requiredActions", "actions")
    if explicit:
        return list(explicit)
    text = field_of(item, "description", "content", default="")
    actions = [s.strip() for s in text.split(".") if _ACTION_PATTERN.search(s)]
    return actions[:MAX_REQUIRED_ACTIONS]


def map_requirement(item: Any, origin: ComplianceOrigin, query: str) -> ComplianceRecord:
    title = field_of(item, "name", "title", default="Unnamed Requirement")
    description = field_of(item, "description", "content", default="")
    relevance = relevance_of(item)
    if relevance is None:
        relevance = text_relevance(f"{title} {description}", query)
    return ComplianceRecord(
        id=str(field_of(item, "id", default=new_id("comp"))),
        title=title,
        description=description,
        category=field_of(item, "category", default="general"),
        industry=field_of(item, "industry", default="general"),
        tags=tags_of(item),
        source=(
            KnowledgeSourceType.KNOWLEDGE_BASE
            if origin != ComplianceOrigin.WEB_RESEARCH
            else KnowledgeSourceType.WEB_RESEARCH
        ),
        origin=origin,
        relevance=relevance,
        severity=extract_severity(item),
        region=field_of(item, "region", default="GLOBAL"),
        regulatory_body=field_of(item, "regulatory_body", "regulatoryBody", "author"),
        effective_date=safe_parse_date(field_of(item, "effective_date", "effectiveDate")),
        compliance_deadline=safe_parse_date(field_of(item, "compliance_deadline", "complianceDeadline", "deadline")),
        required_actions=extract_required_actions(item),
        penalties=field_of(item, "penalties", "consequences"),
        references=references_of(item),
        url=field_of(item, "url"),
    )


def source_confidence(record: ComplianceRecord) -> float:
    """Provenance confidence; official government references score a flat 0.7."""
    if record.origin == ComplianceOrigin.WEB_RESEARCH and record.url:
        cred = check_source_credibility(record.url)
        if cred.domain.endswith(".gov"):
            return GOVERNMENT_SCORE
    return compliance_confidence(record)


def validate_requirements(records: List[ComplianceRecord]) -> List[ComplianceRecord]:
    """Score provenance; boost confident regulatory records, dampen the rest."""
    validated: List[ComplianceRecord] = []
    for record in records:
        confidence = source_confidence(record)
        if confidence > CONFIDENCE_THRESHOLD:
            if record.origin == ComplianceOrigin.REGULATORY:
                record = result_fusion.boost(record, result_fusion.REGULATORY_BOOST)
        else:
            record = result_fusion.boost(record, result_fusion.LOW_CONFIDENCE_PENALTY)
        validated.append(record.model_copy(update={"confidence": confidence}))
    return validated


class ComplianceSearch:
    def __init__(
        self,
        knowledge: KnowledgeSource,
        cache: CacheOrchestrator,
        timeout: Optional[float] = None,
    ) -> None:
        self.knowledge = knowledge
        self.cache = cache
        self.timeout = config.SOURCE_TIMEOUT_SECONDS if timeout is None else timeout

    async def execute(self, request: ComplianceRequest) -> SearchResponse[ComplianceRecord]:
        validate_request(request)
        filters = request.filters
        logger.info("Searching compliance requirements", query=request.query, industry=filters.industry, region=filters.region)

        regulatory, web = await asyncio.gather(
            guarded_source("regulatory_database", self._fetch_regulatory, request, timeout=self.timeout),
            guarded_source("compliance_web_research", self._search_web, request),
        )

        validated = validate_requirements(list(regulatory) + list(web))
        ranked = result_fusion.rank_compliance(validated)
        page, total = result_fusion.paginate(ranked, request.limit)

        logger.info(
            "Compliance search complete",
            query=request.query,
            regulatory_results=len(regulatory),
            web_results=len(web),
            total_results=total,
        )
        return SearchResponse[ComplianceRecord](
            query=request.query,
            results=page,
            total_results=total,
            filters=filters.model_dump(exclude_none=True, mode="json"),
        )

    async def _fetch_regulatory(self, request: ComplianceRequest) -> List[ComplianceRecord]:
        filters = request.filters
        items = await call_maybe_async(
            self.knowledge.query,
            KnowledgeQuery(query=request.query, category=filters.category or "compliance"),
        )
        records = [map_requirement(item, ComplianceOrigin.REGULATORY, request.query) for item in items or []]
        return [
            r for r in records
            if result_fusion.matches_compliance(r, filters.industry, filters.region, filters.severity)
        ]

    async def _search_web(self, request: ComplianceRequest) -> List[ComplianceRecord]:
        filters = request.filters
        query = research_query(request.query, filters)
        entries = await self.cache.fetch_or_research(
            cache_key(request.query, filters),
            query,
            config.COMPLIANCE_RESEARCH_SOURCES,
            config.COMPLIANCE_CACHE_TTL_DAYS,
            max_results=config.RESEARCH_MAX_RESULTS,
        )
        records = [map_requirement(e, ComplianceOrigin.WEB_RESEARCH, query) for e in entries]
        if filters.severity:
            records = [r for r in records if r.severity == filters.severity]
        return records
