"""
Benchmark metric extraction and normalization.

Pipeline per benchmark record:

1. Keep existing percentile values when they are complete and ordered,
   otherwise extract them from the description text, otherwise fall back to
   category placeholders.
2. Convert time units to days and clamp percentages to 0-100.
3. Clamp outliers with an IQR rule, then repair any ordering inversion so
   ``p25 <= p50 <= p75 <= p90`` always holds on output.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

import structlog

from ..models.knowledge import BenchmarkRecord, BenchmarkValues

logger = structlog.get_logger(__name__)

_NUM = r"(\d+(?:\.\d+)?)"
_UNIT = r"\s*(?:days?|hours?|%)?"

PERCENTILE_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    "p25": re.compile(r"25(?:th)?\s*percentile[:\s]+" + _NUM + _UNIT, re.IGNORECASE),
    "p50": re.compile(r"(?:50(?:th)?\s*percentile|median)[:\s]+" + _NUM + _UNIT, re.IGNORECASE),
    "p75": re.compile(r"75(?:th)?\s*percentile[:\s]+" + _NUM + _UNIT, re.IGNORECASE),
    "p90": re.compile(r"90(?:th)?\s*percentile[:\s]+" + _NUM + _UNIT, re.IGNORECASE),
    "average": re.compile(r"average[:\s]+" + _NUM + _UNIT, re.IGNORECASE),
}
RANGE_PATTERN = re.compile(_NUM + r"\s*[-–]\s*" + _NUM)

# (multiplier, divisor) into days
TIME_UNIT_TO_DAYS = {
    "hour": (1, 24),
    "hours": (1, 24),
    "minute": (1, 24 * 60),
    "minutes": (1, 24 * 60),
    "week": (7, 1),
    "weeks": (7, 1),
}
PERCENT_UNITS = {"percentage", "percent", "%"}

MEDIAN_SYNTHESIS = {"p25": 0.75, "p75": 1.25, "p90": 1.5}
RANGE_FRACTIONS = {"p25": 0.25, "p50": 0.5, "p75": 0.75, "p90": 0.9}

PLACEHOLDERS = {
    "time": (5, 10, 15, 20),
    "quality": (70, 80, 90, 95),
    "percentage": (70, 80, 90, 95),
    "cost": (1000, 5000, 10000, 20000),
}
DEFAULT_PLACEHOLDER = (25, 50, 75, 90)


def _values(p25: float, p50: float, p75: float, p90: float, average: Optional[float] = None) -> BenchmarkValues:
    return BenchmarkValues(p25=p25, p50=p50, p75=p75, p90=p90, average=average)


def extract_values(text: str) -> Optional[BenchmarkValues]:
    """Pull percentile values out of free text.

    Labelled percentiles win. A lone median synthesizes the others
    (x0.75 / x1.25 / x1.5). Without percentile language the first numeric
    ``min - max`` range is interpolated. Returns None when nothing matches.
    """
    text = text or ""
    found: Dict[str, float] = {}
    for key, pattern in PERCENTILE_PATTERNS.items():
        m = pattern.search(text)
        if m:
            found[key] = float(m.group(1))

    if "p50" in found:
        median = found["p50"]
        return _values(
            found.get("p25", median * MEDIAN_SYNTHESIS["p25"]),
            median,
            found.get("p75", median * MEDIAN_SYNTHESIS["p75"]),
            found.get("p90", median * MEDIAN_SYNTHESIS["p90"]),
            found.get("average"),
        )

    m = RANGE_PATTERN.search(text)
    if m:
        low, high = float(m.group(1)), float(m.group(2))
        span = high - low
        return _values(
            *(low + span * RANGE_FRACTIONS[k] for k in ("p25", "p50", "p75", "p90")),
            average=(low + high) / 2,
        )
    return None


def placeholder_values(category: Optional[str]) -> BenchmarkValues:
    return _values(*PLACEHOLDERS.get((category or "").lower(), DEFAULT_PLACEHOLDER))


def is_time_metric(category: Optional[str], unit: str) -> bool:
    unit = (unit or "").lower()
    return (category or "").lower() == "time" or "hour" in unit or "day" in unit or unit in TIME_UNIT_TO_DAYS


def normalize_units(values: BenchmarkValues, unit: str, category: Optional[str] = None) -> "tuple[BenchmarkValues, str]":
    """Convert time units to days and clamp percentages into [0, 100]."""
    unit_key = (unit or "").strip().lower()

    if is_time_metric(category, unit_key):
        conversion = TIME_UNIT_TO_DAYS.get(unit_key)
        if conversion is not None:
            mult, div = conversion

            def days(v: float) -> float:
                return v * mult / div

            values = _values(
                days(values.p25),
                days(values.p50),
                days(values.p75),
                days(values.p90),
                days(values.average) if values.average is not None else None,
            )
            unit = "days"

    if unit_key in PERCENT_UNITS:
        def pct(v: float) -> float:
            return min(100.0, max(0.0, v))

        values = _values(
            pct(values.p25),
            pct(values.p50),
            pct(values.p75),
            pct(values.p90),
            pct(values.average) if values.average is not None else None,
        )
        unit = "percentage"

    return values, unit


def enforce_ordering(values: Sequence[float]) -> List[float]:
    """Repair inversions around the median (p50 is never moved)."""
    p25, p50, p75, p90 = values
    p25 = min(p25, p50)
    p75 = max(p75, p50)
    p90 = max(p90, p75)
    return [p25, p50, p75, p90]


def trim_outliers(values: BenchmarkValues) -> BenchmarkValues:
    """IQR clamp: p25 floored at ``p25 - 1.5*iqr``, p75 capped at
    ``p75 + 1.5*iqr``, p90 capped at ``1.2 * upper``; p50 untouched."""
    iqr = values.p75 - values.p25
    lower = values.p25 - 1.5 * iqr
    upper = values.p75 + 1.5 * iqr
    clamped = [
        max(lower, values.p25),
        values.p50,
        min(upper, values.p75),
        min(upper * 1.2, values.p90),
    ]
    return _values(*enforce_ordering(clamped), average=values.average)


def normalize_benchmark(record: BenchmarkRecord) -> BenchmarkRecord:
    """Run the full pipeline, returning a new record."""
    values = record.benchmark_values
    if values is None or not values.is_ordered():
        extracted = extract_values(record.description)
        if extracted is None:
            values = placeholder_values(record.metric_type.value if record.metric_type else record.category)
            logger.debug("Using placeholder benchmark values", benchmark_id=record.id, category=record.category)
        else:
            values = extracted

    category = record.metric_type.value if record.metric_type else record.category
    values, unit = normalize_units(values, record.metric_unit, category)
    values = trim_outliers(values)
    return record.model_copy(update={"benchmark_values": values, "metric_unit": unit})


def normalize_benchmarks(records: Sequence[BenchmarkRecord]) -> List[BenchmarkRecord]:
    return [normalize_benchmark(r) for r in records]
