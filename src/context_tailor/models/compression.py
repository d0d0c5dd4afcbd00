"""Context compression models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class CompressionLevel(str, Enum):
    """How much of a chunk survives compression. Dropped chunks have no level."""

    FULL = "FULL"
    SUMMARY = "SUMMARY"
    KEYWORDS = "KEYWORDS"


class CompressionThresholds(BaseModel):
    """Minimum final scores for each initial compression level."""

    full_min: float = Field(default=0.8, ge=0.0, le=1.0)
    summary_min: float = Field(default=0.5, ge=0.0, le=1.0)
    keywords_min: float = Field(default=0.3, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _ordered(self) -> "CompressionThresholds":
        if not self.full_min >= self.summary_min >= self.keywords_min:
            raise ValueError("thresholds must satisfy full_min >= summary_min >= keywords_min")
        return self


class CompressionConfig(BaseModel):
    """Budget and level settings for one compression run."""

    total_token_budget: int = Field(gt=0)
    thresholds: CompressionThresholds = Field(default_factory=CompressionThresholds)
    summary_max_tokens: int = Field(default=150, gt=0)
    reserved_tokens: int = Field(default=500, ge=0)

    @property
    def available_budget(self) -> int:
        return self.total_token_budget - self.reserved_tokens


class CompressedChunk(BaseModel):
    """A chunk after compression to FULL, SUMMARY or KEYWORDS."""

    original_chunk_id: str
    compression_level: CompressionLevel
    content: str
    original_token_count: int = Field(ge=0)
    compressed_token_count: int = Field(ge=0)
    relevance_score: float
    document_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CompressionStats(BaseModel):
    """Per-level tallies and token totals of a compression run."""

    full_count: int = Field(default=0, ge=0)
    summary_count: int = Field(default=0, ge=0)
    keywords_count: int = Field(default=0, ge=0)
    dropped_count: int = Field(default=0, ge=0)
    original_tokens: int = Field(default=0, ge=0)
    compressed_tokens: int = Field(default=0, ge=0)
    savings_percent: int = Field(default=0, ge=0, le=100)
    over_budget: bool = False

    @property
    def included_count(self) -> int:
        return self.full_count + self.summary_count + self.keywords_count


class CompressedContext(BaseModel):
    chunks: list[CompressedChunk] = Field(default_factory=list)
    total_token_count: int = Field(default=0, ge=0)
    stats: CompressionStats = Field(default_factory=CompressionStats)
