"""
Research cache backends.

Entries are append-mostly and TTL-bounded. Expiry is enforced by readers
(``ResearchCacheEntry.is_valid``); neither backend deletes eagerly beyond
what Redis key expiry does on its own.
"""

from __future__ import annotations

import hashlib
import json
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence

import redis.asyncio as redis
import structlog

from ..core import config
from ..models.knowledge import ResearchCacheEntry
from ..utils.date_utils import get_current_utc

logger = structlog.get_logger(__name__)


def normalize_query_key(query: str) -> str:
    return " ".join((query or "").lower().split())


class InMemoryResearchCache:
    """Dict-backed cache keyed by normalized query."""

    def __init__(self) -> None:
        self._entries: Dict[str, List[ResearchCacheEntry]] = defaultdict(list)

    def lookup(self, query: str, limit: int) -> List[ResearchCacheEntry]:
        entries = self._entries.get(normalize_query_key(query), [])
        ordered = sorted(entries, key=lambda e: e.relevance_score, reverse=True)
        return list(ordered[:limit])

    def store_batch(self, entries: Sequence[ResearchCacheEntry]) -> None:
        for entry in entries:
            self._entries[normalize_query_key(entry.query)].append(entry)

    def all_entries(self) -> List[ResearchCacheEntry]:
        return [e for bucket in self._entries.values() for e in bucket]


class RedisResearchCache:
    """Redis-backed cache; one JSON list per query key, expiring with its
    longest-lived entry."""

    def __init__(self, redis_url: Optional[str] = None, prefix: str = "research"):
        self.redis_url = redis_url or config.REDIS_URL
        self.prefix = prefix
        self.redis_pool: Optional[redis.ConnectionPool] = None

    async def initialize(self) -> bool:
        """Initialize Redis connection pool"""
        try:
            self.redis_pool = redis.ConnectionPool.from_url(
                self.redis_url, max_connections=20, decode_responses=True
            )
            client = redis.Redis(connection_pool=self.redis_pool)
            await client.ping()
            logger.info("Redis connection established", url=self.redis_url)
            return True
        except (redis.RedisError, OSError) as e:
            logger.error("Failed to connect to Redis", error=str(e))
            return False

    async def close(self) -> None:
        if self.redis_pool:
            await self.redis_pool.disconnect()

    @asynccontextmanager
    async def get_client(self):
        """Context manager for Redis client"""
        if not self.redis_pool:
            await self.initialize()

        client = redis.Redis(connection_pool=self.redis_pool)
        try:
            yield client
        finally:
            await client.aclose()

    def _generate_cache_key(self, query: str) -> str:
        key_string = normalize_query_key(query)
        # Hash long keys
        if len(key_string) > 200:
            key_hash = hashlib.md5(key_string.encode()).hexdigest()
            return f"{self.prefix}:hash:{key_hash}"
        return f"{self.prefix}:{key_string}"

    async def _read(self, client, key: str) -> List[ResearchCacheEntry]:
        raw = await client.get(key)
        if not raw:
            return []
        return [ResearchCacheEntry.model_validate(item) for item in json.loads(raw)]

    async def lookup(self, query: str, limit: int) -> List[ResearchCacheEntry]:
        key = self._generate_cache_key(query)
        try:
            async with self.get_client() as client:
                entries = await self._read(client, key)
        except (redis.RedisError, OSError, ValueError) as e:
            logger.error("Research cache lookup failed", key=key, error=str(e))
            return []
        entries.sort(key=lambda e: e.relevance_score, reverse=True)
        return entries[:limit]

    async def store_batch(self, entries: Sequence[ResearchCacheEntry]) -> None:
        grouped: Dict[str, List[ResearchCacheEntry]] = defaultdict(list)
        for entry in entries:
            grouped[self._generate_cache_key(entry.query)].append(entry)

        now = get_current_utc()
        try:
            async with self.get_client() as client:
                for key, batch in grouped.items():
                    existing = [e for e in await self._read(client, key) if e.is_valid(now)]
                    merged = existing + batch
                    ttl = int(max((e.expires_at - now).total_seconds() for e in merged))
                    if ttl <= 0:
                        continue
                    payload = json.dumps([e.model_dump(mode="json") for e in merged], default=str)
                    await client.setex(key, ttl, payload)
        except (redis.RedisError, OSError, ValueError) as e:
            logger.error("Research cache write failed", keys=list(grouped), error=str(e))
            return
        logger.debug("Research cache batch stored", keys=len(grouped), entries=len(entries))


def create_research_cache(backend: Optional[str] = None):
    """Build the configured cache backend (``memory`` or ``redis``)."""
    backend = (backend or config.RESEARCH_CACHE_BACKEND).lower()
    if backend == "redis":
        return RedisResearchCache()
    return InMemoryResearchCache()
