"""Web search request and response models."""

from typing import Literal

from pydantic import BaseModel, Field


class WebSearchQuery(BaseModel):
    query: str = Field(min_length=1, max_length=500)
    max_results: int = Field(default=5, ge=1, le=20)
    search_depth: Literal["basic", "advanced"] = "basic"
    include_domains: list[str] | None = None
    exclude_domains: list[str] | None = None


class WebSearchResult(BaseModel):
    """Provider-independent search hit."""

    title: str
    url: str
    snippet: str
    score: float = Field(ge=0.0, le=1.0)
    published_date: str | None = None
    raw_content: str | None = None
    provider: Literal["tavily", "brave"]


class WebSearchResponse(BaseModel):
    results: list[WebSearchResult] = Field(default_factory=list)
    query: str
    provider: str
    latency_ms: int = Field(ge=0)
