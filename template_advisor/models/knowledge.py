"""
Knowledge records produced by the knowledge base, the research cache and
live research, plus the domain-specific benchmark and compliance variants.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.date_utils import get_current_utc, is_expired
from .base import (
    BenchmarkOrigin,
    CompanySize,
    MetricType,
    ComplianceOrigin,
    ComplianceSeverity,
    Complexity,
    KnowledgeSourceType,
    ResearchSource,
)


class KnowledgeRecord(BaseModel):
    """A single search result.

    Records are not mutated once produced; scoring and boosting create
    copies with ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    category: str = "general"
    industry: Optional[str] = None
    process_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    source: KnowledgeSourceType = KnowledgeSourceType.KNOWLEDGE_BASE
    relevance: float = Field(0.5, ge=0.0, le=1.0)
    published_at: Optional[datetime] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    complexity: Optional[Complexity] = None
    url: Optional[str] = None
    author: Optional[str] = None
    citations: Optional[int] = Field(None, ge=0)

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}"


class BenchmarkValues(BaseModel):
    p25: float
    p50: float
    p75: float
    p90: float
    average: Optional[float] = None

    def percentiles(self) -> List[float]:
        return [self.p25, self.p50, self.p75, self.p90]

    def is_ordered(self) -> bool:
        return self.p25 <= self.p50 <= self.p75 <= self.p90


class BenchmarkRecord(KnowledgeRecord):
    metric_unit: str = "count"
    metric_type: Optional[MetricType] = None
    benchmark_values: Optional[BenchmarkValues] = None
    sample_size: Optional[int] = None
    year: int = Field(default_factory=lambda: get_current_utc().year)
    company_size: Optional[CompanySize] = None
    region: Optional[str] = None
    methodology: Optional[str] = None
    origin: BenchmarkOrigin = BenchmarkOrigin.INDUSTRY_REPORT
    references: List[str] = Field(default_factory=list)


class ComplianceRecord(KnowledgeRecord):
    severity: ComplianceSeverity = ComplianceSeverity.MEDIUM
    region: str = "GLOBAL"
    regulatory_body: Optional[str] = None
    effective_date: Optional[datetime] = None
    compliance_deadline: Optional[datetime] = None
    required_actions: List[str] = Field(default_factory=list)
    penalties: Optional[str] = None
    references: List[str] = Field(default_factory=list)
    origin: ComplianceOrigin = ComplianceOrigin.REGULATORY


class ResearchCacheEntry(BaseModel):
    id: str
    query: str
    url: str = ""
    title: str
    content: str = ""
    relevance_score: float = 0.5
    source: ResearchSource = ResearchSource.WEB
    author: Optional[str] = None
    citations: Optional[int] = Field(None, ge=0)
    created_at: datetime = Field(default_factory=get_current_utc)
    expires_at: datetime

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return not is_expired(self.expires_at, now)
