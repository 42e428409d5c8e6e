"""
Collaborator protocols consumed by the advisor.

Implementations may be sync or async; call sites go through
``utils.async_utils.call_maybe_async`` so both work.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Protocol, Sequence, Union, runtime_checkable

from ..models.knowledge import KnowledgeRecord, ResearchCacheEntry
from ..models.search import KnowledgeQuery

RawRecord = Union[Mapping[str, Any], KnowledgeRecord]


@runtime_checkable
class KnowledgeSource(Protocol):
    def query(self, filters: KnowledgeQuery) -> Sequence[RawRecord]: ...


@runtime_checkable
class ResearchCache(Protocol):
    def lookup(self, query: str, limit: int) -> Sequence[ResearchCacheEntry]: ...

    def store_batch(self, entries: Sequence[ResearchCacheEntry]) -> None: ...


@runtime_checkable
class ResearchProvider(Protocol):
    def research(self, query: str, sources: List[str], max_results: int) -> List[Dict[str, Any]]:
        """Return ``{title, content, url, relevance}`` dicts."""
        ...


@runtime_checkable
class TemplateGenerator(Protocol):
    def generate(self, requirements: List[str], context: Dict[str, Any]) -> Dict[str, Any]: ...
