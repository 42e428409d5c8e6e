"""
Base enums shared across knowledge, template and search models
"""

from enum import Enum


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"
    VERY_COMPLEX = "very_complex"


class KnowledgeSourceType(str, Enum):
    KNOWLEDGE_BASE = "knowledge_base"
    WEB_RESEARCH = "web_research"
    COMMUNITY = "community"


class ResearchSource(str, Enum):
    WEB = "web"
    DOCUMENTATION = "documentation"
    GITHUB = "github"
    STACKOVERFLOW = "stackoverflow"
    OTHER = "other"


class ComplianceSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    ComplianceSeverity.CRITICAL: 4,
    ComplianceSeverity.HIGH: 3,
    ComplianceSeverity.MEDIUM: 2,
    ComplianceSeverity.LOW: 1,
}


class ComplianceOrigin(str, Enum):
    REGULATORY = "regulatory"
    INDUSTRY_STANDARD = "industry_standard"
    WEB_RESEARCH = "web_research"


class BenchmarkOrigin(str, Enum):
    INDUSTRY_REPORT = "industry_report"
    RESEARCH_PAPER = "research_paper"
    WEB_RESEARCH = "web_research"


class MetricType(str, Enum):
    TIME = "time"
    COST = "cost"
    QUALITY = "quality"
    EFFICIENCY = "efficiency"


class CompanySize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class TrustLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
