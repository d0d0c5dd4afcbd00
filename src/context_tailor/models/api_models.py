"""Pydantic models for provider credentials and the tailoring request/response surface."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationInfo, field_validator

from .compression import CompressionStats
from .gaps import GapReport
from .quality import QualityScore
from .synthesis import Citation

TargetPlatform = Literal["chatgpt", "claude"]


class APIKeys(BaseModel):
    """Provider API keys.

    Uses SecretStr so keys never end up in logs or reprs.
    """

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    openai: SecretStr | None = Field(default=None, description="OpenAI API key")
    cohere: SecretStr | None = Field(default=None, description="Cohere rerank API key")
    tavily: SecretStr | None = Field(default=None, description="Tavily search API key")
    brave: SecretStr | None = Field(default=None, description="Brave search API key")

    @field_validator("openai", "cohere", "tavily", "brave", mode="before")
    @classmethod
    def validate_api_key_format(
        cls, v: str | SecretStr | None, info: ValidationInfo
    ) -> SecretStr | None:
        """Normalise empty keys to None and check the known prefixes."""
        if v is None:
            return None

        key_str = v.get_secret_value() if isinstance(v, SecretStr) else str(v).strip()
        if not key_str:
            return None

        if info.field_name == "openai" and not key_str.startswith(("sk-", "test-", "demo-")):
            raise ValueError("Invalid OpenAI API key format")
        if info.field_name == "tavily" and not key_str.startswith(("tvly-", "test-", "demo-")):
            raise ValueError("Invalid Tavily API key format")

        return SecretStr(key_str)

    def reveal(self, name: str) -> str | None:
        """Return the plain key for ``name``. Never log the result."""
        secret: SecretStr | None = getattr(self, name)
        return secret.get_secret_value() if secret else None


class TailorOptions(BaseModel):
    max_tokens: int | None = Field(default=None, gt=0, description="Override for the budget")
    include_web_search: bool = Field(default=True, description="Allow web augmentation")
    include_score: bool = Field(default=True, description="Attach quality details")
    custom_instructions: str | None = Field(default=None, max_length=2000)


class TailorRequest(BaseModel):
    """A request to assemble context for one task against one project."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_input: str = Field(min_length=1, max_length=5000)
    project_id: str = Field(min_length=1)
    target_platform: TargetPlatform = "chatgpt"
    options: TailorOptions = Field(default_factory=TailorOptions)


class TailorSection(BaseModel):
    name: str
    content: str
    token_count: int = Field(ge=0)
    source_count: int = Field(ge=0)


class WebSearchSummary(BaseModel):
    """What the web augmentation step did for one request."""

    triggered: bool = False
    queries: list[str] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)
    results_added: int = 0


class TailorMetadata(BaseModel):
    total_tokens: int = Field(ge=0)
    tokens_used: int = Field(ge=0)
    chunks_retrieved: int = Field(ge=0)
    chunks_included: int = Field(ge=0)
    gap_report: GapReport
    compression_stats: CompressionStats
    processing_time_ms: int = Field(ge=0)
    quality_score: float = Field(ge=0.0, le=1.0)
    quality_details: QualityScore | None = None
    web_search: WebSearchSummary = Field(default_factory=WebSearchSummary)
    stage_failures: dict[str, str] = Field(default_factory=dict)


class TailorResponse(BaseModel):
    session_id: str
    context: str
    sections: list[TailorSection] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    metadata: TailorMetadata

    def to_record(self) -> dict[str, Any]:
        """Flatten into the payload handed to a session recorder."""
        return self.model_dump(mode="json", exclude={"session_id"})


class TailorPreviewResponse(BaseModel):
    estimated_tokens: int = Field(ge=0)
    estimated_chunks: int = Field(ge=0)
    gap_summary: str
    estimated_quality: float = Field(ge=0.0, le=1.0)
    processing_time_ms: int = Field(ge=0)
