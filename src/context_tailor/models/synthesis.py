"""Source synthesis and citation models."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SourceType(str, Enum):
    PROJECT_DOC = "PROJECT_DOC"
    WEB_SEARCH = "WEB_SEARCH"
    API_RESPONSE = "API_RESPONSE"
    USER_INPUT = "USER_INPUT"


class ContextSource(BaseModel):
    """Where a synthesized block's content came from."""

    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    source_id: str
    title: str
    url: str | None = None
    timestamp: str | None = None
    authority_score: float = Field(ge=0.0, le=1.0)


class Contradiction(BaseModel):
    """Two incompatible claims about the same entity and the chunks making them."""

    model_config = ConfigDict(frozen=True)

    claim: str
    sources: list[str]
    alternative: str
    alternative_sources: list[str]


class SynthesizedBlock(BaseModel):
    """One unit of assembled context. Blocks are replaced, never edited."""

    model_config = ConfigDict(frozen=True)

    content: str
    sources: list[ContextSource]
    priority: float
    section: str
    contradictions: list[Contradiction] | None = None

    @property
    def is_web(self) -> bool:
        return any(source.source_type == SourceType.WEB_SEARCH for source in self.sources)


class SynthesizedContext(BaseModel):
    blocks: list[SynthesizedBlock] = Field(default_factory=list)
    total_token_count: int = Field(default=0, ge=0)
    source_count: int = Field(default=0, ge=0)
    contradiction_count: int = Field(default=0, ge=0)
    sections: list[str] = Field(default_factory=list)


class WebResult(BaseModel):
    """Web page handed to the synthesizer for the related-resources section."""

    url: str
    title: str
    snippet: str
    content: str | None = None
    fetched_at: str | None = None


class Citation(BaseModel):
    """Deduplicated, numbered reference back to a contributing source."""

    id: str
    type: Literal["document", "web"]
    source_title: str
    source_url: str | None = None
    document_id: str | None = None
    chunk_index: int = Field(ge=0)
    relevance_score: float = Field(ge=0.0, le=1.0)
    search_query: str | None = None
    fetched_at: str | None = None
