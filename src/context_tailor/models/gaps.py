"""Coverage gap models."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .task_analysis import KnowledgeDomain

GapAction = Literal["web_search", "upload_document", "ask_user"]


class GapType(str, Enum):
    MISSING_DOMAIN = "MISSING_DOMAIN"
    SHALLOW_COVERAGE = "SHALLOW_COVERAGE"
    OUTDATED_INFO = "OUTDATED_INFO"
    MISSING_EXAMPLES = "MISSING_EXAMPLES"
    NO_CONTEXT = "NO_CONTEXT"


class GapSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Gap(BaseModel):
    """A task requirement the retrieved material does not cover well enough."""

    type: GapType
    severity: GapSeverity
    description: str
    affected_domains: list[KnowledgeDomain] = Field(default_factory=list)
    suggested_actions: list[GapAction] = Field(default_factory=list)
    suggested_queries: list[str] = Field(default_factory=list)


class GapReport(BaseModel):
    """Gaps found for one request plus coverage and quality estimates."""

    gaps: list[Gap] = Field(default_factory=list)
    overall_coverage: float = Field(ge=0.0, le=1.0)
    is_actionable: bool = False
    estimated_quality_without_filling: float = Field(ge=0.0, le=1.0)
    estimated_quality_with_filling: float = Field(ge=0.0, le=1.0)

    def count(self, severity: GapSeverity) -> int:
        return sum(1 for gap in self.gaps if gap.severity == severity)
