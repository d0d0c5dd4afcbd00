"""Retrieval and relevance scoring models."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class RetrievedChunk(BaseModel):
    """First-pass nearest-neighbour hit hydrated with its chunk content."""

    chunk_id: str
    document_id: str
    content: str
    score: float = Field(description="Bi-encoder similarity, roughly in [0, 1]")
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScoredChunk(BaseModel):
    """Chunk carrying both encoder scores and its blended final score."""

    chunk_id: str
    document_id: str
    content: str
    bi_encoder_score: float
    cross_encoder_score: float
    final_score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
    rank: int = Field(default=0, ge=0)

    @property
    def source_type(self) -> str:
        return str(self.metadata.get("source_type", "PROJECT_DOC"))


class ScoringConfig(BaseModel):
    """Retrieval sizes and blend weights for the relevance scorer."""

    candidate_count: int = Field(default=20, gt=0)
    rerank_count: int = Field(default=20, gt=0)
    return_count: int = Field(default=10, gt=0)
    bi_encoder_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    cross_encoder_weight: float = Field(default=0.7, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _rerank_within_candidates(self) -> "ScoringConfig":
        if self.rerank_count > self.candidate_count:
            self.rerank_count = self.candidate_count
        return self


class RerankScore(BaseModel):
    """Cross-encoder score for the passage at ``index``."""

    index: int = Field(ge=0)
    score: float = Field(ge=0.0, le=1.0)
