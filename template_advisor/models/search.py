"""
Search filters, requests and the shared response envelope
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from ..utils.date_utils import get_current_utc
from .base import CompanySize, ComplianceSeverity, Complexity, MetricType

T = TypeVar("T")


class BestPracticeFilters(BaseModel):
    industry: Optional[str] = None
    process_type: Optional[str] = None
    complexity: Optional[Complexity] = None
    tags: List[str] = Field(default_factory=list)


class ComplianceFilters(BaseModel):
    industry: Optional[str] = None
    region: Optional[str] = None
    category: Optional[str] = None
    severity: Optional[ComplianceSeverity] = None


class BenchmarkFilters(BaseModel):
    industry: Optional[str] = None
    process_type: Optional[str] = None
    metric_type: Optional[MetricType] = None
    company_size: Optional[CompanySize] = None
    region: Optional[str] = None


class KnowledgeQuery(BaseModel):
    """What a knowledge source is asked for; unset fields mean "any"."""

    query: str = ""
    category: Optional[str] = None
    industry: Optional[str] = None
    process_type: Optional[str] = None
    complexity: Optional[Complexity] = None
    limit: Optional[int] = None


class BestPracticesRequest(BaseModel):
    query: str
    user_id: str
    filters: BestPracticeFilters = Field(default_factory=BestPracticeFilters)
    limit: Optional[int] = None


class ComplianceRequest(BaseModel):
    query: str = ""
    user_id: Optional[str] = None
    filters: ComplianceFilters = Field(default_factory=ComplianceFilters)
    limit: Optional[int] = None


class BenchmarkRequest(BaseModel):
    query: str = ""
    user_id: Optional[str] = None
    filters: BenchmarkFilters = Field(default_factory=BenchmarkFilters)
    limit: Optional[int] = None


class SearchResponse(BaseModel, Generic[T]):
    query: str
    results: List[T]
    total_results: int
    searched_at: datetime = Field(default_factory=get_current_utc)
    filters: Dict[str, Any] = Field(default_factory=dict)
