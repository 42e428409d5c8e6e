"""
Template routes: validation, sequencing, generation and finalization
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.dependencies import AdvisorServices, get_services
from ..logging_config import bind_request_context
from ..models.session import InterviewSession
from ..models.template import (
    FinalizedTemplate,
    RecommendationCheck,
    TemplateModifications,
    TemplateRecommendation,
    TemplateStep,
    ValidationReport,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/templates", tags=["templates"])


class OptimizeRequest(BaseModel):
    steps: List[TemplateStep]


class GenerateRequest(BaseModel):
    session_id: str
    user_id: str
    preferences: Dict[str, Any] = Field(default_factory=dict)


class FinalizeRequest(BaseModel):
    session_id: str
    user_id: str
    template_id: str
    modifications: Optional[TemplateModifications] = None


@router.post("/validate", response_model=ValidationReport)
async def validate_template(
    template: TemplateRecommendation,
    services: AdvisorServices = Depends(get_services),
):
    """Structural problems come back in the report, never as an error status."""
    return services.validator.validate(template)


@router.post("/optimize", response_model=List[TemplateStep])
async def optimize_steps(
    payload: OptimizeRequest,
    services: AdvisorServices = Depends(get_services),
):
    return services.recommendations.optimize_step_sequence(payload.steps)


@router.post("/review", response_model=RecommendationCheck)
async def review_recommendations(
    recommendations: List[TemplateRecommendation],
    services: AdvisorServices = Depends(get_services),
):
    return services.recommendations.validate_recommendations(recommendations)


@router.put("/sessions/{session_id}", response_model=InterviewSession)
async def put_session(
    session_id: str,
    session: InterviewSession,
    services: AdvisorServices = Depends(get_services),
):
    """Store the interview snapshot that generation and finalization read."""
    bind_request_context(user_id=session.user_id, session_id=session_id)
    return services.recommendations.save_session(session.model_copy(update={"id": session_id}))


@router.post("/generate", response_model=List[TemplateRecommendation])
async def generate_templates(
    payload: GenerateRequest,
    services: AdvisorServices = Depends(get_services),
):
    bind_request_context(user_id=payload.user_id, session_id=payload.session_id)
    return await services.recommendations.generate_for_session(
        payload.session_id, payload.user_id, payload.preferences
    )


@router.post("/finalize", response_model=FinalizedTemplate)
async def finalize_template(
    payload: FinalizeRequest,
    services: AdvisorServices = Depends(get_services),
):
    bind_request_context(user_id=payload.user_id, session_id=payload.session_id)
    finalized = services.recommendations.finalize_template(
        payload.session_id, payload.user_id, payload.template_id, payload.modifications
    )
    logger.info("Template finalized via API", session_id=payload.session_id, template_id=finalized.template.id)
    return finalized
