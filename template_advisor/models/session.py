"""
Interview session snapshot consumed by the recommendation use cases.

Persistence is owned elsewhere; the advisor only needs ownership, status and
the extracted requirements.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .template import TemplateRecommendation


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class InterviewSession(BaseModel):
    id: str
    user_id: str
    status: SessionStatus = SessionStatus.ACTIVE
    message_count: int = 0
    requirements: List[str] = Field(default_factory=list)
    analysis: Dict[str, Any] = Field(default_factory=dict)
    recommendations: List[TemplateRecommendation] = Field(default_factory=list)
