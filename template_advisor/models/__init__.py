"""
Models package for the template advisor
"""

from .base import (
    BenchmarkOrigin,
    CompanySize,
    ComplianceOrigin,
    ComplianceSeverity,
    Complexity,
    IssueSeverity,
    KnowledgeSourceType,
    MetricType,
    ResearchSource,
    TrustLevel,
)
from .knowledge import (
    BenchmarkRecord,
    BenchmarkValues,
    ComplianceRecord,
    KnowledgeRecord,
    ResearchCacheEntry,
)
from .search import (
    BenchmarkFilters,
    BenchmarkRequest,
    BestPracticeFilters,
    BestPracticesRequest,
    ComplianceFilters,
    ComplianceRequest,
    KnowledgeQuery,
    SearchResponse,
)
from .session import InterviewSession, SessionStatus
from .template import (
    FinalizedTemplate,
    RecommendationCheck,
    StepModification,
    TemplateModifications,
    TemplateRecommendation,
    TemplateStep,
    ValidationIssue,
    ValidationReport,
    ValidationWarning,
)

__all__ = [
    "BenchmarkFilters",
    "BenchmarkOrigin",
    "BenchmarkRecord",
    "BenchmarkRequest",
    "BenchmarkValues",
    "BestPracticeFilters",
    "BestPracticesRequest",
    "CompanySize",
    "ComplianceFilters",
    "ComplianceOrigin",
    "ComplianceRecord",
    "ComplianceRequest",
    "ComplianceSeverity",
    "Complexity",
    "FinalizedTemplate",
    "InterviewSession",
    "IssueSeverity",
    "KnowledgeQuery",
    "KnowledgeRecord",
    "KnowledgeSourceType",
    "MetricType",
    "RecommendationCheck",
    "ResearchCacheEntry",
    "ResearchSource",
    "SearchResponse",
    "SessionStatus",
    "StepModification",
    "TemplateModifications",
    "TemplateRecommendation",
    "TemplateStep",
    "TrustLevel",
    "ValidationIssue",
    "ValidationReport",
    "ValidationWarning",
]
