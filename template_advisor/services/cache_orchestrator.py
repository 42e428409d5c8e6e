"""
Cache orchestration for web research.

Per query: lookup -> hit (serve cached entries) or miss. Synchronous
callers may research live on a miss and write the results back; searches
with thin coverage schedule research in the background instead, without
blocking or being cancelled with the request.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from ..core import config
from ..models.base import ResearchSource
from ..models.knowledge import ResearchCacheEntry
from ..utils.async_utils import call_maybe_async, spawn_background, with_timeout
from ..utils.date_utils import expiry_after_days, get_current_utc
from ..utils.error_handling import guarded_source, log_exception
from ..utils.url_utils import extract_base_domain
from .interfaces import ResearchCache, ResearchProvider
from .record_mapping import count_of

logger = structlog.get_logger(__name__)


class CacheState(str, Enum):
    HIT = "hit"
    MISS = "miss"


@dataclass
class CacheLookup:
    state: CacheState
    entries: List[ResearchCacheEntry] = field(default_factory=list)

    @property
    def hit(self) -> bool:
        return self.state == CacheState.HIT


def classify_source(url: Optional[str]) -> ResearchSource:
    domain = extract_base_domain(url)
    if not domain:
        return ResearchSource.OTHER
    if domain == "github.com" or domain.endswith(".github.io"):
        return ResearchSource.GITHUB
    if domain.endswith("stackoverflow.com") or domain.endswith("stackexchange.com"):
        return ResearchSource.STACKOVERFLOW
    if domain.startswith("docs.") or domain.startswith("developer.") or "/docs" in (url or ""):
        return ResearchSource.DOCUMENTATION
    return ResearchSource.WEB


def _relevance_of(result: Mapping[str, Any]) -> float:
    raw = result.get("relevance", result.get("relevanceScore", result.get("relevance_score")))
    try:
        value = float(raw) if raw is not None else 0.5
    except (TypeError, ValueError):
        value = 0.5
    return max(0.0, min(1.0, value))


def to_cache_entries(
    key: str,
    results: Iterable[Mapping[str, Any]],
    ttl_days: int,
    now: Optional[datetime] = None,
) -> List[ResearchCacheEntry]:
    created = now or get_current_utc()
    expires = expiry_after_days(ttl_days, created)
    entries: List[ResearchCacheEntry] = []
    for result in results:
        title = result.get("title") or ""
        if not title:
            continue
        entries.append(ResearchCacheEntry(
            id=str(uuid.uuid4()),
            query=key,
            url=result.get("url") or "",
            title=title,
            content=result.get("content") or result.get("description") or "",
            relevance_score=_relevance_of(result),
            source=classify_source(result.get("url")),
            author=result.get("author"),
            citations=count_of(result, "citations"),
            created_at=created,
            expires_at=expires,
        ))
    return entries


class CacheOrchestrator:
    def __init__(
        self,
        cache: ResearchCache,
        provider: Optional[ResearchProvider] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.cache = cache
        self.provider = provider
        self.timeout = config.SOURCE_TIMEOUT_SECONDS if timeout is None else timeout

    async def lookup(
        self,
        key: str,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CacheLookup:
        """Read cached entries for ``key``, dropping expired ones."""
        limit = limit or config.CACHE_LOOKUP_LIMIT
        raw = await guarded_source("research_cache", self.cache.lookup, key, limit, timeout=self.timeout)
        now = now or get_current_utc()
        fresh = [e for e in raw if e.is_valid(now)]
        state = CacheState.HIT if fresh else CacheState.MISS
        logger.debug("Research cache lookup", key=key, state=state.value, fresh=len(fresh), stale=len(raw) - len(fresh))
        return CacheLookup(state=state, entries=fresh)

    async def research(self, query: str, sources: List[str], max_results: int) -> List[Dict[str, Any]]:
        """Live research on the request path; failure means no contribution."""
        if self.provider is None:
            return []
        return await guarded_source(
            "research_provider",
            self.provider.research,
            query,
            sources,
            max_results,
            timeout=self.timeout,
        )

    async def store_results(
        self,
        key: str,
        results: Iterable[Mapping[str, Any]],
        ttl_days: int,
    ) -> List[ResearchCacheEntry]:
        """Best-effort write-back; returns the entries built from ``results``."""
        entries = to_cache_entries(key, results, ttl_days)
        if not entries:
            return entries
        await guarded_source(
            "research_cache_store",
            self.cache.store_batch,
            entries,
            timeout=self.timeout,
            default=False,
        )
        return entries

    async def fetch_or_research(
        self,
        key: str,
        research_query: str,
        sources: List[str],
        ttl_days: int,
        max_results: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[ResearchCacheEntry]:
        """Cached entries on a hit; otherwise research now, cache, and return."""
        cached = await self.lookup(key, limit)
        if cached.hit:
            return cached.entries

        results = await self.research(research_query, sources, max_results or config.RESEARCH_MAX_RESULTS)
        if not results:
            return []
        entries = await self.store_results(key, results, ttl_days)
        logger.info("Research cached on miss", key=key, stored=len(entries), ttl_days=ttl_days)
        return entries

    def schedule_background_research(
        self,
        queries: List[str],
        sources: List[str],
        max_results: int,
        ttl_days: int,
    ) -> Optional["asyncio.Task[Any]"]:
        """Fire-and-forget research for ``queries``; each result set is cached
        under the query that produced it."""
        if self.provider is None or not queries:
            return None
        return spawn_background(
            self._background_research(list(queries), list(sources), max_results, ttl_days),
            name="background_research",
        )

    async def _background_research(
        self,
        queries: List[str],
        sources: List[str],
        max_results: int,
        ttl_days: int,
    ) -> int:
        stored = 0
        for query in queries:
            try:
                results = await with_timeout(
                    call_maybe_async(self.provider.research, query, sources, max_results), self.timeout
                )
                entries = to_cache_entries(query, results or [], ttl_days)
                if entries:
                    await with_timeout(call_maybe_async(self.cache.store_batch, entries), self.timeout)
                    stored += len(entries)
            except asyncio.TimeoutError:
                logger.warning("Background research timed out", query=query, timeout=self.timeout)
            except Exception as exc:
                log_exception("Background research failed", exc, query=query)
        logger.info("Background research complete", queries=len(queries), stored=stored)
        return stored

