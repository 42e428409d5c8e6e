"""
Knowledge search routes: best practices, compliance and benchmarks
"""

import structlog
from fastapi import APIRouter, Depends

from ..core.dependencies import AdvisorServices, get_services
from ..logging_config import bind_request_context
from ..models.knowledge import BenchmarkRecord, ComplianceRecord, KnowledgeRecord
from ..models.search import (
    BenchmarkRequest,
    BestPracticesRequest,
    ComplianceRequest,
    SearchResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("/best-practices", response_model=SearchResponse[KnowledgeRecord])
async def search_best_practices(
    payload: BestPracticesRequest,
    services: AdvisorServices = Depends(get_services),
):
    bind_request_context(user_id=payload.user_id)
    return await services.best_practices.execute(payload)


@router.post("/compliance", response_model=SearchResponse[ComplianceRecord])
async def search_compliance(
    payload: ComplianceRequest,
    services: AdvisorServices = Depends(get_services),
):
    """Regulatory requirements for an industry, optionally scoped to a region."""
    bind_request_context(user_id=payload.user_id)
    return await services.compliance.execute(payload)


@router.post("/benchmarks", response_model=SearchResponse[BenchmarkRecord])
async def search_benchmarks(
    payload: BenchmarkRequest,
    services: AdvisorServices = Depends(get_services),
):
    bind_request_context(user_id=payload.user_id)
    return await services.benchmarks.execute(payload)
