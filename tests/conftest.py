"""Shared fixtures and in-process fakes for the advisor test-suite.

Nothing here touches the network: research providers, generators and
knowledge sources are small fakes that record how they were called.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from template_advisor.logging_config import configure_logging
from template_advisor.models import TemplateRecommendation, TemplateStep
from template_advisor.services.cache_orchestrator import CacheOrchestrator
from template_advisor.services.knowledge_source import InMemoryKnowledgeSource
from template_advisor.services.research_cache import InMemoryResearchCache

configure_logging()


# ---------------------------------------------------------------------------
#  Builders
# ---------------------------------------------------------------------------

def make_step(step_id: str, deps: Optional[List[str]] = None, **fields: Any) -> TemplateStep:
    data: Dict[str, Any] = {
        "name": f"Step {step_id}",
        "description": f"Carry out step {step_id} carefully",
        "duration": 8,
        "artifacts": [f"{step_id}.doc"],
        "responsible": "Analyst",
    }
    data.update(fields)
    return TemplateStep(id=step_id, dependencies=deps or [], **data)


def make_template(steps: Optional[List[TemplateStep]] = None, **fields: Any) -> TemplateRecommendation:
    data: Dict[str, Any] = {
        "id": "tmpl-1",
        "name": "Customer Onboarding",
        "description": "Standard onboarding process for new enterprise customers",
        "rationale": ["Matches stated requirements"],
        "estimated_duration": 24,
    }
    data.update(fields)
    if steps is None:
        steps = [make_step("a"), make_step("b", ["a"]), make_step("c", ["b"])]
    return TemplateRecommendation(steps=steps, **data)


# ---------------------------------------------------------------------------
#  Fakes
# ---------------------------------------------------------------------------

class FakeResearchProvider:
    """Returns canned results and remembers every query it saw."""

    def __init__(self, results: Optional[List[Dict[str, Any]]] = None, fail: bool = False):
        self.results = results if results is not None else []
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []

    async def research(self, query: str, sources: List[str], max_results: int) -> List[Dict[str, Any]]:
        self.calls.append({"query": query, "sources": list(sources), "max_results": max_results})
        if self.fail:
            raise RuntimeError("research backend down")
        return [dict(r) for r in self.results[:max_results]]


class FailingKnowledgeSource:
    def query(self, filters):
        raise RuntimeError("knowledge base unavailable")


class SlowKnowledgeSource:
    def __init__(self, delay: float = 1.0):
        self.delay = delay

    async def query(self, filters):
        await asyncio.sleep(self.delay)
        return [{"id": "late", "name": "Too late"}]


class FailingCache:
    def lookup(self, query: str, limit: int):
        raise ConnectionError("cache offline")

    def store_batch(self, entries):
        raise ConnectionError("cache offline")


class FakeGenerator:
    def __init__(self, draft: Optional[Dict[str, Any]] = None):
        self.draft = draft or {
            "name": "Invoice Approval",
            "description": "Approve supplier invoices before payment",
            "complexity": "medium",
            "rationale": ["Separation of duties", "Audit trail", "Faster payment cycle"],
            "steps": [
                {"id": "1", "name": "Receive invoice", "description": "Log incoming invoice", "duration": 2},
                {"id": "2", "name": "Match PO", "description": "Three-way match", "duration": 4, "dependencies": ["1"]},
                {"id": "3", "name": "Approve", "description": "Manager approval", "duration": 1, "dependencies": ["2"]},
                {"id": "4", "name": "Pay", "description": "Schedule payment", "dependencies": ["3"]},
            ],
        }
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, requirements: List[str], context: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append({"requirements": list(requirements), "context": dict(context)})
        return dict(self.draft)


# ---------------------------------------------------------------------------
#  Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def research_cache() -> InMemoryResearchCache:
    return InMemoryResearchCache()


@pytest.fixture
def provider() -> FakeResearchProvider:
    return FakeResearchProvider()


@pytest.fixture
def orchestrator(research_cache, provider) -> CacheOrchestrator:
    return CacheOrchestrator(research_cache, provider, timeout=0.5)


@pytest.fixture
def knowledge() -> InMemoryKnowledgeSource:
    return InMemoryKnowledgeSource()
