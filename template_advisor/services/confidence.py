"""
Confidence and relevance scoring.

Every score is a base value plus independent additive factors, clamped to
its documented range. The functions are pure and safe to call concurrently.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..models.base import BenchmarkOrigin, ComplianceOrigin, Complexity
from ..models.knowledge import BenchmarkRecord, ComplianceRecord
from ..models.template import TemplateRecommendation
from ..utils.date_utils import calculate_age_years

TEMPLATE_CONFIDENCE_FLOOR = 0.3
TEMPLATE_CONFIDENCE_CEILING = 0.95

_BENCHMARK_ORIGIN_BONUS = {
    BenchmarkOrigin.INDUSTRY_REPORT: 0.2,
    BenchmarkOrigin.RESEARCH_PAPER: 0.15,
}

# (minimum sample size, bonus), checked in order
_SAMPLE_SIZE_TIERS = ((1000, 0.15), (500, 0.10), (100, 0.05))

# (maximum age in years, bonus), checked in order
_RECENCY_TIERS = ((1, 0.15), (2, 0.10), (3, 0.05))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def template_confidence(template: TemplateRecommendation) -> float:
    score = 0.5

    step_count = len(template.steps)
    if step_count >= 5:
        score += 0.1
    if step_count >= 10:
        score += 0.1

    if len(template.rationale) >= 3:
        score += 0.15

    if template.complexity == Complexity.SIMPLE:
        score += 0.1
    elif template.complexity in (Complexity.COMPLEX, Complexity.VERY_COMPLEX):
        score -= 0.1

    return round(clamp(score, TEMPLATE_CONFIDENCE_FLOOR, TEMPLATE_CONFIDENCE_CEILING), 4)


def benchmark_confidence(benchmark: BenchmarkRecord, now: Optional[datetime] = None) -> float:
    score = 0.5
    score += _BENCHMARK_ORIGIN_BONUS.get(benchmark.origin, 0.0)

    if benchmark.sample_size:
        for threshold, bonus in _SAMPLE_SIZE_TIERS:
            if benchmark.sample_size >= threshold:
                score += bonus
                break

    age = calculate_age_years(benchmark.year, now)
    if age is not None:
        for max_age, bonus in _RECENCY_TIERS:
            if age <= max_age:
                score += bonus
                break
        else:
            score -= 0.02 * age

    if benchmark.methodology and len(benchmark.methodology) > 50:
        score += 0.05

    return round(clamp(score), 4)


def compliance_confidence(record: ComplianceRecord) -> float:
    """Confidence in a compliance requirement's provenance."""
    score = 0.5
    if record.origin == ComplianceOrigin.REGULATORY:
        score += 0.3
    elif record.origin == ComplianceOrigin.INDUSTRY_STANDARD:
        score += 0.2
    if record.regulatory_body:
        score += 0.1
    if record.references:
        score += 0.1
    return round(clamp(score), 4)


def _query_words(query: str) -> list:
    return [w for w in (query or "").lower().split() if w]


def text_relevance(text: str, query: str) -> float:
    """Fraction of query words found as substrings of ``text``."""
    words = _query_words(query)
    if not words:
        return 0.0
    haystack = (text or "").lower()
    hits = sum(1 for w in words if w in haystack)
    return hits / len(words)
