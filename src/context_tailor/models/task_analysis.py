"""Task analysis models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KnowledgeDomain(str, Enum):
    """Knowledge domains a task can touch."""

    FRONTEND = "FRONTEND"
    BACKEND = "BACKEND"
    DATABASE = "DATABASE"
    DEVOPS = "DEVOPS"
    SECURITY = "SECURITY"
    TESTING = "TESTING"
    DESIGN = "DESIGN"
    ARCHITECTURE = "ARCHITECTURE"
    DOCUMENTATION = "DOCUMENTATION"
    BUSINESS = "BUSINESS"
    DATA_SCIENCE = "DATA_SCIENCE"
    GENERAL = "GENERAL"


class TaskType(str, Enum):
    """Kind of work a task asks for.

    Declaration order doubles as the tie-break order during detection.
    """

    CODING = "CODING"
    WRITING = "WRITING"
    ANALYSIS = "ANALYSIS"
    RESEARCH = "RESEARCH"
    DEBUGGING = "DEBUGGING"
    DESIGN = "DESIGN"
    PLANNING = "PLANNING"
    OTHER = "OTHER"


class ComplexityLevel(str, Enum):
    """Complexity tiers, each mapped to a token budget."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXPERT = "EXPERT"


class TaskAnalysis(BaseModel):
    """Structured reading of a free-text task description."""

    model_config = ConfigDict(frozen=True)

    task_type: TaskType = Field(description="Detected task type")
    complexity: ComplexityLevel = Field(description="Assessed complexity tier")
    domains: list[KnowledgeDomain] = Field(
        min_length=1, description="Domains ordered by classification score"
    )
    key_entities: list[str] = Field(default_factory=list, description="Extracted key terms")
    suggested_search_queries: list[str] = Field(
        min_length=1, max_length=5, description="Queries used for retrieval"
    )
    estimated_token_budget: int = Field(gt=0, description="Token budget for the context")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence in the analysis")

    @field_validator("domains")
    @classmethod
    def _unique_domains(cls, v: list[KnowledgeDomain]) -> list[KnowledgeDomain]:
        return list(dict.fromkeys(v))

    @property
    def primary_domain(self) -> KnowledgeDomain:
        return self.domains[0]
