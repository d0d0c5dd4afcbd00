"""Data models for the context tailoring pipeline."""

from .api_models import (
    APIKeys,
    TailorMetadata,
    TailorOptions,
    TailorPreviewResponse,
    TailorRequest,
    TailorResponse,
    TailorSection,
    WebSearchSummary,
)
from .budget import BudgetAllocationStrategy, ModelConfig, TokenBudget
from .compression import (
    CompressedChunk,
    CompressedContext,
    CompressionConfig,
    CompressionLevel,
    CompressionStats,
    CompressionThresholds,
)
from .gaps import Gap, GapReport, GapSeverity, GapType
from .quality import (
    AgentConfig,
    AgentRequirement,
    QualityScore,
    QualitySubScores,
    ScoredConfig,
    SourceAttribution,
)
from .scoring import RerankScore, RetrievedChunk, ScoredChunk, ScoringConfig
from .synthesis import (
    Citation,
    ContextSource,
    Contradiction,
    SourceType,
    SynthesizedBlock,
    SynthesizedContext,
    WebResult,
)
from .task_analysis import ComplexityLevel, KnowledgeDomain, TaskAnalysis, TaskType
from .web_search import WebSearchQuery, WebSearchResponse, WebSearchResult

__all__ = [
    # Task analysis
    "KnowledgeDomain",
    "TaskType",
    "ComplexityLevel",
    "TaskAnalysis",
    # Retrieval and scoring
    "RetrievedChunk",
    "ScoredChunk",
    "ScoringConfig",
    "RerankScore",
    # Gaps
    "Gap",
    "GapReport",
    "GapSeverity",
    "GapType",
    # Compression
    "CompressionLevel",
    "CompressionThresholds",
    "CompressionConfig",
    "CompressedChunk",
    "CompressionStats",
    "CompressedContext",
    # Synthesis and citations
    "SourceType",
    "ContextSource",
    "Contradiction",
    "SynthesizedBlock",
    "SynthesizedContext",
    "WebResult",
    "Citation",
    # Web search
    "WebSearchQuery",
    "WebSearchResult",
    "WebSearchResponse",
    # Quality
    "QualitySubScores",
    "QualityScore",
    "AgentRequirement",
    "AgentConfig",
    "SourceAttribution",
    "ScoredConfig",
    # Budget
    "ModelConfig",
    "TokenBudget",
    "BudgetAllocationStrategy",
    # Request surface
    "APIKeys",
    "TailorOptions",
    "TailorRequest",
    "TailorSection",
    "TailorMetadata",
    "TailorResponse",
    "TailorPreviewResponse",
    "WebSearchSummary",
]
