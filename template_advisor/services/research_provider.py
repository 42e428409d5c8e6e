"""
Brave web research provider
---------------------------
Async wrapper around Brave's web search endpoint that returns research
results in the ``{title, content, url, relevance, published_at}`` shape the
cache orchestrator stores.

Notes
- Requires ``BRAVE_API_KEY`` (aka subscription token).
- ``sources`` are category hints from the use cases; Brave has no source
  filter, so they only steer the query with a short suffix.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from ..core import config
from ..utils.date_utils import safe_parse_date

logger = structlog.get_logger(__name__)

BRAVE_WEB_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
BRAVE_MAX_COUNT = 20
MAX_QUERY_CHARS = 400

SOURCE_HINTS = {
    "academic_papers": "research",
    "research_papers": "research",
    "industry_reports": "report",
    "regulatory_sites": "regulation",
    "legal_resources": "law",
    "benchmarking_sites": "benchmark",
}


def rank_relevance(position: int, total: int) -> float:
    """Linear decay from 1.0 for the top hit to 0.5 for the last."""
    if total <= 1:
        return 1.0
    return round(1.0 - 0.5 * position / (total - 1), 4)


class BraveResearchProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BRAVE_WEB_SEARCH_URL,
        language: str = "en",
        timeout_seconds: Optional[int] = None,
    ) -> None:
        self.api_key = api_key or config.BRAVE_API_KEY
        self.base_url = base_url
        self.language = language
        self.timeout_seconds = timeout_seconds or config.BRAVE_TIMEOUT_SECONDS
        # Created on demand so construction never needs a running loop
        self._session: Optional[aiohttp.ClientSession] = None

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    def build_query(self, query: str, sources: List[str]) -> str:
        hints = []
        for src in sources or []:
            hint = SOURCE_HINTS.get(src)
            if hint and hint not in hints and hint not in query.lower():
                hints.append(hint)
        full = " ".join([query] + hints).strip()
        return full[:MAX_QUERY_CHARS]

    async def research(self, query: str, sources: List[str], max_results: int) -> List[Dict[str, Any]]:
        if not self.is_configured():
            logger.debug("BraveResearchProvider not configured; skipping", query=query)
            return []

        params = {
            "q": self.build_query(query, sources),
            "count": max(1, min(max_results, BRAVE_MAX_COUNT)),
            "search_lang": self.language,
        }
        headers = {"X-Subscription-Token": self.api_key, "Accept": "application/json"}
        session = await self._ensure_session()
        async with session.get(self.base_url, params=params, headers=headers) as resp:
            if resp.status != 200:
                logger.warning("Brave research request failed", status=resp.status, query=query)
                return []
            data = await resp.json()

        items = (data.get("web") or {}).get("results", [])[:max_results]
        results: List[Dict[str, Any]] = []
        for i, item in enumerate(items):
            snippets = item.get("extra_snippets") or []
            content = " ".join([item.get("description", "")] + list(snippets)).strip()
            published = item.get("page_age") or item.get("age")
            results.append({
                "title": item.get("title", ""),
                "content": content,
                "url": item.get("url", ""),
                "relevance": rank_relevance(i, len(items)),
                "published_at": safe_parse_date(published) if isinstance(published, str) else None,
            })
        logger.info("Brave research complete", query=query, results=len(results))
        return results
