"""Configuration management for the tailoring pipeline."""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from context_tailor.models.api_models import APIKeys

# Note: .env is loaded in context_tailor/core/__init__.py before this module is imported


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _env_flag(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from environment variables.

    Accepts: "1", "true", "TRUE", "True" as True.
    """
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip() in {"1", "true", "TRUE", "True"}


def _env_float_default(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return float(v)
    except ValueError:
        return default


class TailorConfig(BaseModel):
    """Provider selection, credentials and feature flags, read once at startup."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        validate_default=True,
        extra="forbid",
    )

    api_keys: APIKeys = Field(
        default_factory=lambda: APIKeys(
            openai=os.getenv("OPENAI_API_KEY"),
            cohere=os.getenv("COHERE_API_KEY"),
            tavily=os.getenv("TAVILY_API_KEY"),
            brave=os.getenv("BRAVE_SEARCH_API_KEY"),
        ),
        description="API keys for external collaborators",
    )

    default_model: str = Field(
        default_factory=lambda: _env_str("TAILOR_MODEL", "openai:gpt-4o-mini"),
        description="pydantic-ai model name for summarization and relevance judging",
    )

    cross_encoder_provider: Literal["llm", "cohere", "none"] = Field(
        default_factory=lambda: _env_str("CROSS_ENCODER_PROVIDER", "llm"),
        description="Re-ranker implementation",
    )
    cross_encoder_model: str = Field(
        default_factory=lambda: _env_str("CROSS_ENCODER_MODEL", "rerank-english-v3.0"),
        description="Model name passed to the Cohere rerank API",
    )

    embedding_provider: Literal["local", "openai"] = Field(
        default_factory=lambda: _env_str("EMBEDDING_PROVIDER", "local"),
        description="Embedding backend",
    )
    embedding_model: str | None = Field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL") or None,
        description="Embedding model override; each backend has its own default",
    )

    enable_web_search: bool = Field(
        default_factory=lambda: _env_flag("ENABLE_WEB_SEARCH", True),
        description="Allow web augmentation when gaps are found",
    )

    http_timeout: float = Field(
        default_factory=lambda: _env_float_default("HTTP_TIMEOUT_SECONDS", 30.0),
        gt=0.0,
        description="Timeout in seconds for outbound HTTP calls",
    )

    @property
    def openai_api_key(self) -> str | None:
        return self.api_keys.reveal("openai")

    @property
    def cohere_api_key(self) -> str | None:
        return self.api_keys.reveal("cohere")

    @property
    def tavily_api_key(self) -> str | None:
        return self.api_keys.reveal("tavily")

    @property
    def brave_api_key(self) -> str | None:
        return self.api_keys.reveal("brave")


# Global configuration instance
config = TailorConfig()
