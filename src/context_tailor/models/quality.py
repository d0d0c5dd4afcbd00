"""Quality scoring models, including the agent-config scoring inputs."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


class QualitySubScores(BaseModel):
    coverage: float = Field(ge=0.0, le=1.0, description="How much of the task is addressed")
    diversity: float = Field(ge=0.0, le=1.0, description="Variety of documents and source types")
    relevance: float = Field(ge=0.0, le=1.0, description="Average relevance of included chunks")
    compression: float = Field(ge=0.0, le=1.0, description="Efficiency of compression")


class QualityScore(BaseModel):
    """Weighted composite score with improvement hints."""

    overall: int = Field(ge=0, le=100, description="Weighted composite score (0-100)")
    sub_scores: QualitySubScores
    suggestions: list[str] = Field(default_factory=list, max_length=4)
    scored_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class AgentRequirement(BaseModel):
    """What kind of agent configuration a user asked for."""

    role: str = Field(min_length=1, max_length=200)
    stack: list[str] = Field(min_length=1, max_length=20)
    domain: str = Field(default="general", max_length=100)
    description: str = Field(default="", max_length=5000)


class SourceAttribution(BaseModel):
    name: str
    type: Literal["curated", "online", "project"]
    url: str | None = None
    relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)


class AgentConfig(BaseModel):
    """A generated agent definition."""

    name: str = Field(min_length=1, max_length=200)
    mission: str = Field(min_length=1, max_length=2000)
    tools: list[str] = Field(default_factory=list)
    conventions: list[str] = Field(default_factory=list)
    context_chunks: list[str] = Field(default_factory=list)
    source_attribution: list[SourceAttribution] = Field(default_factory=list)


class ScoredConfig(BaseModel):
    """A configuration source after scoring against a requirement (0-10 scale)."""

    name: str
    combined_score: float = Field(ge=0.0, le=10.0)
