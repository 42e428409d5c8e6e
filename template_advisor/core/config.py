"""
Core configuration for the template advisor

Centralizes tunable knobs for search paging, cache lifetimes and source
timeouts so use cases don't scatter magic numbers. Values can be overridden
via env vars per environment.
"""

import os
from typing import List


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def get_environment() -> str:
    """Get current environment"""
    return os.getenv("ENVIRONMENT", "production")


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_PRETTY: bool = os.getenv("LOG_PRETTY", "0").lower() in {"1", "true", "yes"}


# ────────────────────────────────────────────────────────────
#  Search paging
# ────────────────────────────────────────────────────────────

# Page size when the caller does not pass a limit
DEFAULT_PAGE_SIZE: int = _env_int("DEFAULT_PAGE_SIZE", 20)

# Max cached research entries pulled per lookup
CACHE_LOOKUP_LIMIT: int = _env_int("CACHE_LOOKUP_LIMIT", 20)

# Below this many fused best-practice results we refresh research in the background
BEST_PRACTICES_MIN_RESULTS: int = _env_int("BEST_PRACTICES_MIN_RESULTS", 5)

# ────────────────────────────────────────────────────────────
#  Research cache lifetimes (days)
# ────────────────────────────────────────────────────────────
BEST_PRACTICES_CACHE_TTL_DAYS: int = _env_int("BEST_PRACTICES_CACHE_TTL_DAYS", 7)
COMPLIANCE_CACHE_TTL_DAYS: int = _env_int("COMPLIANCE_CACHE_TTL_DAYS", 7)
BENCHMARK_CACHE_TTL_DAYS: int = _env_int("BENCHMARK_CACHE_TTL_DAYS", 30)

# ────────────────────────────────────────────────────────────
#  External sources
# ────────────────────────────────────────────────────────────

# Upper bound on any single knowledge/cache/research call
SOURCE_TIMEOUT_SECONDS: float = _env_float("SOURCE_TIMEOUT_SECONDS", 10.0)

BEST_PRACTICES_RESEARCH_MAX_RESULTS: int = _env_int("BEST_PRACTICES_RESEARCH_MAX_RESULTS", 10)
RESEARCH_MAX_RESULTS: int = _env_int("RESEARCH_MAX_RESULTS", 20)

BEST_PRACTICES_RESEARCH_SOURCES: List[str] = [
    "industry_blogs",
    "academic_papers",
    "best_practices",
]
COMPLIANCE_RESEARCH_SOURCES: List[str] = [
    "regulatory_sites",
    "compliance_databases",
    "legal_resources",
]
BENCHMARK_RESEARCH_SOURCES: List[str] = [
    "industry_reports",
    "research_papers",
    "benchmarking_sites",
]

REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
RESEARCH_CACHE_BACKEND: str = os.getenv("RESEARCH_CACHE_BACKEND", "memory").lower()

BRAVE_API_KEY: str = os.getenv("BRAVE_API_KEY", "") or os.getenv("BRAVE_SEARCH_API_KEY", "")
BRAVE_TIMEOUT_SECONDS: int = _env_int("BRAVE_TIMEOUT_SECONDS", 20)

OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
TEMPLATE_MODEL: str = os.getenv("TEMPLATE_MODEL", "gpt-4o-mini")
TEMPLATE_MAX_TOKENS: int = _env_int("TEMPLATE_MAX_TOKENS", 4000)

# JSON seeds for the in-process stores (list or {"records": [...]})
KNOWLEDGE_BASE_PATH: str = os.getenv("KNOWLEDGE_BASE_PATH", "")
REGULATIONS_PATH: str = os.getenv("REGULATIONS_PATH", "")
BENCHMARKS_PATH: str = os.getenv("BENCHMARKS_PATH", "")

# ────────────────────────────────────────────────────────────
#  HTTP surface
# ────────────────────────────────────────────────────────────
TRUSTED_ORIGINS: List[str] = [
    o.strip() for o in os.getenv("TRUSTED_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]
