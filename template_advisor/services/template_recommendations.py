"""
Template recommendation generation, review and finalization.

The LLM draft is mapped into a TemplateRecommendation, its steps are
re-sequenced around the heuristic critical path, confidence is scored and
two derived alternatives are attached. Finalization applies user edits,
re-validates and rejects templates with critical errors.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..core.exceptions import (
    AuthorizationError,
    InputValidationError,
    NotFoundError,
    TemplateValidationFailed,
)
from ..models.base import Complexity, IssueSeverity
from ..models.session import InterviewSession, SessionStatus
from ..models.template import (
    FinalizedTemplate,
    RecommendationCheck,
    TemplateModifications,
    TemplateRecommendation,
    TemplateStep,
)
from ..utils.async_utils import call_maybe_async
from . import dependency_graph
from .confidence import template_confidence
from .interfaces import TemplateGenerator
from .record_mapping import enum_or_none, field_of, new_id
from .session_store import InMemorySessionStore
from .template_validator import TemplateValidator

logger = structlog.get_logger(__name__)

DEFAULT_STEP_HOURS = 8.0
MIN_CONVERSATION_MESSAGES = 3
FEW_STEPS_THRESHOLD = 3
LOW_CONFIDENCE_THRESHOLD = 0.7

SIMPLIFIED_CONFIDENCE_FACTOR = 0.9
EXTENDED_CONFIDENCE_FACTOR = 0.85

INDUSTRY_KEYWORDS = {
    "software": ("developer", "engineer", "code", "software"),
    "healthcare": ("patient", "doctor", "medical", "health"),
    "finance": ("bank", "financial", "investment", "trading"),
    "manufacturing": ("production", "factory", "assembly", "manufacturing"),
    "retail": ("customer", "store", "sales", "retail"),
}


def _texts(items: Iterable[Any], *names: str) -> List[str]:
    out = []
    for item in items or []:
        if isinstance(item, str):
            out.append(item)
        else:
            value = field_of(item, *names)
            if value:
                out.append(str(value))
    return out


def extract_industry(analysis: Dict[str, Any]) -> str:
    """Guess the industry from requirement text and stakeholder roles."""
    text = " ".join(
        _texts(analysis.get("requirements", []), "description")
        + _texts(analysis.get("stakeholders", []), "role")
    ).lower()
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        if any(k in text for k in keywords):
            return industry
    return "general"


def map_step(raw: Any, position: int) -> TemplateStep:
    duration = field_of(raw, "duration", "estimatedHours", "estimated_hours", default=DEFAULT_STEP_HOURS)
    return TemplateStep(
        id=str(field_of(raw, "id", default=f"step-{position}")),
        name=field_of(raw, "name", "title", default=""),
        description=field_of(raw, "description", default=""),
        duration=float(duration),
        dependencies=[str(d) for d in field_of(raw, "dependencies", default=[])],
        artifacts=[str(a) for a in field_of(raw, "artifacts", "deliverables", default=[])],
        responsible=field_of(raw, "responsible", "role", "owner", default=""),
    )


def map_draft(draft: Dict[str, Any], analysis: Dict[str, Any]) -> TemplateRecommendation:
    steps = [map_step(s, i) for i, s in enumerate(draft.get("steps") or [], start=1)]
    complexity = (
        enum_or_none(Complexity, draft.get("complexity"))
        or enum_or_none(Complexity, analysis.get("complexity"))
        or Complexity.MEDIUM
    )
    estimated = field_of(draft, "estimatedDuration", "estimated_duration")
    return TemplateRecommendation(
        id=str(draft.get("id") or new_id("tmpl")),
        name=draft.get("name") or "",
        description=draft.get("description") or "",
        steps=steps,
        rationale=[str(r) for r in draft.get("rationale") or []],
        estimated_duration=float(estimated) if estimated else sum(s.duration for s in steps),
        complexity=complexity,
    )


class TemplateRecommendationService:
    def __init__(
        self,
        generator: TemplateGenerator,
        validator: Optional[TemplateValidator] = None,
        sessions: Optional[InMemorySessionStore] = None,
    ):
        self.generator = generator
        self.validator = validator or TemplateValidator()
        self.sessions = sessions if sessions is not None else InMemorySessionStore()

    # ------------------------------------------------------------------ #
    #  Generation
    # ------------------------------------------------------------------ #
    async def generate_recommendations(
        self,
        analysis: Dict[str, Any],
        context: Dict[str, Any],
    ) -> List[TemplateRecommendation]:
        """Generate the primary recommendation plus its alternatives.

        Generator errors propagate; without a draft there is nothing to
        recommend.
        """
        requirements = _texts(analysis.get("requirements", []), "description")
        draft = await call_maybe_async(self.generator.generate, requirements, context)
        primary = map_draft(draft, analysis)
        primary = primary.model_copy(update={"steps": self.optimize_step_sequence(primary.steps)})
        primary = self.calculate_confidence_scores([primary])[0]
        primary = primary.model_copy(update={"alternatives": self.generate_alternatives(primary)})
        logger.info(
            "Template recommendations generated",
            template_id=primary.id,
            steps=len(primary.steps),
            confidence=primary.confidence,
            alternatives=len(primary.alternatives or []),
        )
        return [primary]

    def generate_alternatives(self, primary: TemplateRecommendation) -> List[TemplateRecommendation]:
        return [self._simplified(primary), self._extended(primary)]

    def _simplified(self, primary: TemplateRecommendation) -> TemplateRecommendation:
        critical = {s.id for s in dependency_graph.critical_path(primary.steps)}
        kept = [s for s in primary.steps if s.id in critical] or list(primary.steps)
        kept_ids = {s.id for s in kept}
        steps = [
            s.model_copy(update={"dependencies": [d for d in s.dependencies if d in kept_ids]}, deep=True)
            for s in kept
        ]
        return TemplateRecommendation(
            id=f"{primary.id}-simplified",
            name=f"{primary.name} (Simplified)",
            description=f"Streamlined version of {primary.name} keeping only critical path steps",
            steps=self.optimize_step_sequence(steps),
            confidence=round(primary.confidence * SIMPLIFIED_CONFIDENCE_FACTOR, 4),
            rationale=list(primary.rationale) + ["Reduced to critical path steps"],
            estimated_duration=sum(s.duration for s in steps),
            complexity=Complexity.SIMPLE,
        )

    def _extended(self, primary: TemplateRecommendation) -> TemplateRecommendation:
        ids = {s.id for s in primary.steps}
        depended_on = {d for s in primary.steps for d in s.dependencies}
        end_steps = [s.id for s in primary.steps if s.id not in depended_on]
        review_id = f"step-{len(primary.steps) + 1}"
        while review_id in ids:
            review_id = f"{review_id}-review"
        review = TemplateStep(
            id=review_id,
            name="Review and sign-off",
            description="Formal review of all deliverables and stakeholder sign-off",
            duration=DEFAULT_STEP_HOURS,
            dependencies=end_steps,
            artifacts=["Review report", "Sign-off record"],
            responsible="Process Owner",
        )
        steps = [s.model_copy(deep=True) for s in primary.steps] + [review]
        return TemplateRecommendation(
            id=f"{primary.id}-extended",
            name=f"{primary.name} (Extended)",
            description=f"{primary.name} with an additional review and sign-off stage",
            steps=self.optimize_step_sequence(steps),
            confidence=round(primary.confidence * EXTENDED_CONFIDENCE_FACTOR, 4),
            rationale=list(primary.rationale) + ["Adds formal review for higher assurance"],
            estimated_duration=primary.estimated_duration + review.duration,
            complexity=Complexity.COMPLEX,
        )

    # ------------------------------------------------------------------ #
    #  Review helpers
    # ------------------------------------------------------------------ #
    def validate_recommendations(self, recommendations: List[TemplateRecommendation]) -> RecommendationCheck:
        errors: List[str] = []
        warnings: List[str] = []
        suggestions: List[str] = []
        for rec in recommendations:
            if not dependency_graph.validate_dependencies(rec.steps):
                errors.append(f"Invalid dependencies in template: {rec.name}")
            if dependency_graph.detect_cycles(rec.steps):
                errors.append(f"Circular dependencies detected in template: {rec.name}")
            if len(rec.steps) < FEW_STEPS_THRESHOLD:
                warnings.append(f"Template {rec.name} has very few steps")
            if rec.confidence < LOW_CONFIDENCE_THRESHOLD:
                suggestions.append(f"Consider reviewing template {rec.name} due to low confidence")
        return RecommendationCheck(valid=not errors, errors=errors, warnings=warnings, suggestions=suggestions)

    def calculate_confidence_scores(self, recommendations: List[TemplateRecommendation]) -> List[TemplateRecommendation]:
        return [r.model_copy(update={"confidence": template_confidence(r)}) for r in recommendations]

    @staticmethod
    def optimize_step_sequence(steps: List[TemplateStep]) -> List[TemplateStep]:
        return dependency_graph.optimize_sequence(steps)

    # ------------------------------------------------------------------ #
    #  Session workflows
    # ------------------------------------------------------------------ #
    def _load_owned_session(self, session_id: str, user_id: str) -> InterviewSession:
        if not session_id:
            raise InputValidationError("Session ID is required")
        if not user_id:
            raise InputValidationError("User ID is required")
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}", session_id=session_id)
        if session.user_id != user_id:
            raise AuthorizationError("Unauthorized: Session does not belong to user", session_id=session_id)
        return session

    def save_session(self, session: InterviewSession) -> InterviewSession:
        """Store an interview snapshot; an existing session keeps its owner."""
        if not session.id:
            raise InputValidationError("Session ID is required")
        if not session.user_id:
            raise InputValidationError("User ID is required")
        stored = self.sessions.get(session.id)
        if stored is not None and stored.user_id != session.user_id:
            logger.warning("Session overwrite rejected", session_id=session.id, user_id=session.user_id)
            raise AuthorizationError("Unauthorized: Session does not belong to user", session_id=session.id)
        self.sessions.save(session)
        return session

    async def generate_for_session(
        self,
        session_id: str,
        user_id: str,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> List[TemplateRecommendation]:
        """Generate recommendations from an active interview session.

        The top recommendation (with its alternatives) is stored back on the
        session so it can be finalized later.
        """
        session = self._load_owned_session(session_id, user_id)
        if session.status != SessionStatus.ACTIVE:
            raise InputValidationError("Session is not active")
        if session.message_count < MIN_CONVERSATION_MESSAGES:
            raise InputValidationError("Insufficient conversation history for template generation")
        if not session.requirements:
            raise InputValidationError("No requirements extracted from session")

        analysis = dict(session.analysis)
        analysis.setdefault("requirements", list(session.requirements))
        context = {
            "industry": extract_industry(analysis),
            "processType": analysis.get("category"),
            "complexity": analysis.get("complexity"),
            "constraints": [
                c if isinstance(c, str)
                else f"{field_of(c, 'type', default='constraint')}: {field_of(c, 'description', default='')}"
                for c in analysis.get("constraints", [])
            ],
            "preferences": [f"{k}: {v}" for k, v in (preferences or {}).items()],
        }
        recommendations = await self.generate_recommendations(analysis, context)

        check = self.validate_recommendations(recommendations)
        if not check.valid:
            logger.warning("Some recommendations failed validation", session_id=session_id, errors=check.errors)

        self.sessions.save(session.model_copy(update={"recommendations": recommendations[:1]}))
        return recommendations

    def finalize_template(
        self,
        session_id: str,
        user_id: str,
        template_id: str,
        modifications: Optional[TemplateModifications] = None,
    ) -> FinalizedTemplate:
        if not template_id:
            raise InputValidationError("Template ID is required")
        session = self._load_owned_session(session_id, user_id)
        if not session.recommendations:
            raise InputValidationError("No template has been generated for this session")

        template = self._find_template(session, template_id)
        if modifications is not None:
            template = apply_modifications(template, modifications)

        report = self.validator.validate(template)
        if not report.overall_valid:
            critical = [e.message for e in report.errors if e.severity == IssueSeverity.CRITICAL]
            logger.warning("Template validation failed", template_id=template_id, errors=critical)
            raise TemplateValidationFailed(f"Template validation failed: {', '.join(critical)}", report=report)

        template = template.model_copy(update={"steps": self.optimize_step_sequence(template.steps)})
        logger.info("Template finalized", session_id=session_id, template_id=template.id, steps=len(template.steps))
        return FinalizedTemplate(
            session_id=session_id,
            user_id=user_id,
            template=template,
            validation=report,
            metadata={"version": "1.0", "created_by": "AI Agent", "modified": modifications is not None},
        )

    @staticmethod
    def _find_template(session: InterviewSession, template_id: str) -> TemplateRecommendation:
        for rec in session.recommendations:
            if rec.id == template_id:
                return rec
            for alt in rec.alternatives or []:
                if alt.id == template_id:
                    return alt
        raise NotFoundError(f"Template not found: {template_id}", template_id=template_id)


def apply_modifications(template: TemplateRecommendation, modifications: TemplateModifications) -> TemplateRecommendation:
    """Return a new template with user edits merged in.

    Steps are merged by id: the first step with a known id is updated field
    by field, unknown ids are appended, and steps without an id get
    ``new-{n}``. The step list keeps its order and length otherwise.
    """
    update: Dict[str, Any] = {}
    if modifications.name:
        update["name"] = modifications.name
    if modifications.description:
        update["description"] = modifications.description
    if modifications.estimated_duration:
        update["estimated_duration"] = modifications.estimated_duration
    if modifications.complexity:
        update["complexity"] = modifications.complexity

    if modifications.steps is not None:
        steps: List[TemplateStep] = [s.model_copy(deep=True) for s in template.steps]
        for mod in modifications.steps:
            changes = mod.model_dump(exclude_none=True, exclude={"id"})
            # First step with a matching id; duplicates are left for validation to report
            index = next((i for i, s in enumerate(steps) if mod.id and s.id == mod.id), None)
            if index is not None:
                steps[index] = steps[index].model_copy(update=changes)
            else:
                step_id = mod.id or f"new-{len(steps) + 1}"
                steps.append(TemplateStep(id=step_id, **changes))
        update["steps"] = steps

    return template.model_copy(update=update)
