"""
Result fusion: merge per-source result lists, deduplicate, filter, rank,
boost and paginate.

Source order is significant. Callers pass the knowledge base first so that
its copy of a duplicate survives. Every sort here is stable so ties keep
insertion order.
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime
from itertools import chain
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

import structlog

from ..core import config
from ..models.base import ComplianceSeverity
from ..models.knowledge import BenchmarkRecord, ComplianceRecord, KnowledgeRecord
from ..models.search import BenchmarkFilters, BestPracticeFilters
from .confidence import clamp

logger = structlog.get_logger(__name__)

R = TypeVar("R", bound=KnowledgeRecord)

_WHITESPACE = re.compile(r"\s+")

COMPANY_SIZE_BOOST = 1.2
REGION_BOOST = 1.1
REGULATORY_BOOST = 1.5
LOW_CONFIDENCE_PENALTY = 0.7


def dedup_key(title: str) -> str:
    """Lower-cased title with all whitespace removed."""
    return _WHITESPACE.sub("", (title or "").lower())


def deduplicate(records: Iterable[R]) -> List[R]:
    """Keep the first record per title key. Idempotent."""
    seen = set()
    unique: List[R] = []
    for record in records:
        key = dedup_key(record.title)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def merge_sources(*sources: Sequence[R], stage: str = "fusion") -> List[R]:
    """Concatenate source lists in priority order and deduplicate."""
    combined = list(chain.from_iterable(sources))
    unique = deduplicate(combined)
    logger.info(
        "Result fusion complete",
        stage=stage,
        source_counts=[len(s) for s in sources],
        input_count=len(combined),
        duplicates_removed=len(combined) - len(unique),
    )
    return unique


# ────────────────────────────────────────────────────────────
#  Filters
# ────────────────────────────────────────────────────────────

def _eq_ci(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


def _tags_lower(record: KnowledgeRecord) -> List[str]:
    return [t.lower() for t in record.tags or []]


def matches_best_practice(record: KnowledgeRecord, filters: BestPracticeFilters) -> bool:
    """Exact industry / process type / complexity; tags need any overlap.

    A record with an empty tag list has no opinion and passes a tag filter;
    a record with tags that share none with the filter is dropped.
    """
    if filters.industry and record.industry != filters.industry:
        return False
    if filters.process_type and record.process_type != filters.process_type:
        return False
    if filters.complexity and record.complexity != filters.complexity:
        return False
    if filters.tags and record.tags:
        if not any(t in record.tags for t in filters.tags):
            return False
    return True


def matches_field_or_tag(value: Optional[str], record_value: Optional[str], record: KnowledgeRecord) -> bool:
    """Case-insensitive match on a record field, falling back to its tags."""
    if not value:
        return True
    return _eq_ci(record_value, value) or value.lower() in _tags_lower(record)


def matches_compliance(
    record: ComplianceRecord,
    industry: Optional[str],
    region: Optional[str],
    severity: Optional[ComplianceSeverity] = None,
) -> bool:
    if not matches_field_or_tag(industry, record.industry, record):
        return False
    if not matches_field_or_tag(region, record.region, record):
        return False
    if severity and record.severity != severity:
        return False
    return True


def matches_benchmark(record: BenchmarkRecord, filters: BenchmarkFilters) -> bool:
    if not matches_field_or_tag(filters.process_type, record.process_type, record):
        return False
    if filters.metric_type:
        metric = filters.metric_type.value
        if record.metric_type != filters.metric_type and not _eq_ci(record.category, metric):
            return False
    return True


# ────────────────────────────────────────────────────────────
#  Ranking and boosting
# ────────────────────────────────────────────────────────────

def boost(record: R, factor: float) -> R:
    """Copy with relevance multiplied by ``factor`` and clamped to [0, 1]."""
    return record.model_copy(update={"relevance": round(clamp(record.relevance * factor), 6)})


def rank_by_relevance(records: Iterable[R]) -> List[R]:
    return sorted(records, key=lambda r: r.relevance, reverse=True)


def benchmark_score(record: BenchmarkRecord) -> float:
    confidence = record.confidence if record.confidence is not None else 0.5
    return record.relevance * confidence


def rank_benchmarks(records: Iterable[BenchmarkRecord]) -> List[BenchmarkRecord]:
    return sorted(records, key=benchmark_score, reverse=True)


def rank_compliance(records: Iterable[ComplianceRecord]) -> List[ComplianceRecord]:
    """Severity desc, then nearest deadline, then relevance desc.

    Deadlines only order two records when both carry one. That relation is
    not a total order, so each severity band is sorted by relevance and its
    dated records are then reordered among their own slots. Bands never
    influence each other.
    """
    bands: Dict[int, List[ComplianceRecord]] = defaultdict(list)
    for record in records:
        bands[record.severity.rank].append(record)

    ranked: List[ComplianceRecord] = []
    for rank in sorted(bands, reverse=True):
        band = sorted(bands[rank], key=lambda r: r.relevance, reverse=True)
        ranked.extend(_stable_deadline_sort(band))
    return ranked


def _stable_deadline_sort(records: List[ComplianceRecord]) -> List[ComplianceRecord]:
    # Records with deadlines are reordered among their own slots only
    slots = [i for i, r in enumerate(records) if r.compliance_deadline is not None]
    dated = sorted((records[i] for i in slots), key=lambda r: _deadline_key(r.compliance_deadline))
    result = list(records)
    for slot, record in zip(slots, dated):
        result[slot] = record
    return result


def _deadline_key(deadline: datetime) -> float:
    return deadline.timestamp()


def paginate(records: Sequence[R], limit: Optional[int] = None) -> Tuple[List[R], int]:
    """Return (page, total) where total is the count before truncation."""
    size = limit if limit is not None else config.DEFAULT_PAGE_SIZE
    return list(records[:size]), len(records)
