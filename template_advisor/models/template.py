"""
Template, step and validation report models
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.date_utils import get_current_utc
from .base import Complexity, IssueSeverity


class TemplateStep(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    duration: float = 0.0  # hours
    dependencies: List[str] = Field(default_factory=list)
    artifacts: List[str] = Field(default_factory=list)
    responsible: str = ""
    critical_path: bool = False


class TemplateRecommendation(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    steps: List[TemplateStep] = Field(default_factory=list)
    confidence: float = 0.5
    rationale: List[str] = Field(default_factory=list)
    estimated_duration: float = 0.0
    complexity: Complexity = Complexity.MEDIUM
    alternatives: Optional[List["TemplateRecommendation"]] = None

    @field_validator("alternatives")
    @classmethod
    def _flat_alternatives(cls, value):
        # Alternatives are one level deep
        if value:
            for alt in value:
                if alt.alternatives:
                    raise ValueError("alternatives cannot carry their own alternatives")
        return value


class ValidationIssue(BaseModel):
    type: str
    message: str
    field: Optional[str] = None
    severity: IssueSeverity = IssueSeverity.MAJOR


class ValidationWarning(BaseModel):
    type: str
    message: str
    suggestion: Optional[str] = None


class ValidationReport(BaseModel):
    overall_valid: bool = True
    requirements_valid: bool = True
    template_valid: bool = True
    steps_valid: bool = True
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    completeness_score: int = Field(0, ge=0, le=100)


class RecommendationCheck(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class StepModification(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[float] = None
    dependencies: Optional[List[str]] = None
    artifacts: Optional[List[str]] = None
    responsible: Optional[str] = None


class TemplateModifications(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    estimated_duration: Optional[float] = None
    complexity: Optional[Complexity] = None
    steps: Optional[List[StepModification]] = None


class FinalizedTemplate(BaseModel):
    session_id: str
    user_id: str
    template: TemplateRecommendation
    status: str = "finalized"
    validation: ValidationReport
    finalized_at: datetime = Field(default_factory=get_current_utc)
    metadata: Dict[str, Any] = Field(default_factory=dict)


TemplateRecommendation.model_rebuild()
