"""
Service wiring and FastAPI dependencies for the template advisor API
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Request

from . import config
from ..services.benchmark_search import BenchmarkSearch
from ..services.best_practices_search import BestPracticesSearch
from ..services.cache_orchestrator import CacheOrchestrator
from ..services.compliance_search import ComplianceSearch
from ..services.interfaces import KnowledgeSource, ResearchCache, ResearchProvider, TemplateGenerator
from ..services.knowledge_source import InMemoryKnowledgeSource
from ..services.research_cache import RedisResearchCache, create_research_cache
from ..services.research_provider import BraveResearchProvider
from ..services.session_store import InMemorySessionStore
from ..services.template_generator import OpenAITemplateGenerator
from ..services.template_recommendations import TemplateRecommendationService
from ..services.template_validator import TemplateValidator

logger = structlog.get_logger(__name__)


@dataclass
class AdvisorServices:
    best_practices: BestPracticesSearch
    compliance: ComplianceSearch
    benchmarks: BenchmarkSearch
    recommendations: TemplateRecommendationService
    validator: TemplateValidator
    sessions: InMemorySessionStore
    cache: ResearchCache
    provider: Optional[ResearchProvider] = None

    async def startup(self) -> None:
        if isinstance(self.cache, RedisResearchCache):
            ok = await self.cache.initialize()
            if not ok:
                logger.warning("Redis research cache unavailable; cache lookups will return nothing")

    async def shutdown(self) -> None:
        if isinstance(self.cache, RedisResearchCache):
            await self.cache.close()
        aclose = getattr(self.provider, "aclose", None)
        if aclose is not None:
            await aclose()


def _seeded_source(path: str) -> InMemoryKnowledgeSource:
    if path:
        return InMemoryKnowledgeSource.from_json_file(path)
    return InMemoryKnowledgeSource()


def build_services(
    knowledge: Optional[KnowledgeSource] = None,
    regulations: Optional[KnowledgeSource] = None,
    benchmarks: Optional[KnowledgeSource] = None,
    cache: Optional[ResearchCache] = None,
    provider: Optional[ResearchProvider] = None,
    generator: Optional[TemplateGenerator] = None,
    sessions: Optional[InMemorySessionStore] = None,
    timeout: Optional[float] = None,
) -> AdvisorServices:
    """Assemble the use cases; any collaborator left out is built from config."""
    knowledge = knowledge if knowledge is not None else _seeded_source(config.KNOWLEDGE_BASE_PATH)
    regulations = regulations if regulations is not None else _seeded_source(config.REGULATIONS_PATH)
    benchmarks = benchmarks if benchmarks is not None else _seeded_source(config.BENCHMARKS_PATH)
    cache = cache if cache is not None else create_research_cache()
    if provider is None:
        brave = BraveResearchProvider()
        provider = brave if brave.is_configured() else None
        if provider is None:
            logger.warning("BRAVE_API_KEY not set; live research disabled")
    generator = generator or OpenAITemplateGenerator()

    orchestrator = CacheOrchestrator(cache, provider, timeout=timeout)
    validator = TemplateValidator()
    sessions = sessions if sessions is not None else InMemorySessionStore()
    return AdvisorServices(
        best_practices=BestPracticesSearch(knowledge, orchestrator, timeout=timeout),
        compliance=ComplianceSearch(regulations, orchestrator, timeout=timeout),
        benchmarks=BenchmarkSearch(benchmarks, orchestrator, timeout=timeout),
        recommendations=TemplateRecommendationService(generator, validator, sessions),
        validator=validator,
        sessions=sessions,
        cache=cache,
        provider=provider,
    )


def get_services(request: Request) -> AdvisorServices:
    return request.app.state.services
