"""Cross-encoder implementations used to re-rank retrieved candidates."""

import asyncio
from abc import ABC, abstractmethod

import httpx
import logfire

from context_tailor.agents.relevance_judge import RelevanceJudge
from context_tailor.core.config import config
from context_tailor.core.exceptions import ExternalServiceError, ProviderNotConfiguredError
from context_tailor.models.scoring import RerankScore

COHERE_RERANK_URL = "https://api.cohere.com/v1/rerank"


class CrossEncoder(ABC):
    """Scores (query, passage) pairs jointly.

    Returned indices refer to positions in ``passages``. Implementations may
    omit indices; callers fall back to the bi-encoder score for those.
    """

    @abstractmethod
    async def rerank(self, query: str, passages: list[str]) -> list[RerankScore]:
        pass


class CohereCrossEncoder(CrossEncoder):
    """Cohere rerank API provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key or config.cohere_api_key
        if not self.api_key:
            raise ProviderNotConfiguredError("cohere", "COHERE_API_KEY")
        self.model = model or config.cross_encoder_model
        self._client = client

    async def rerank(self, query: str, passages: list[str]) -> list[RerankScore]:
        if not passages:
            return []

        payload = {
            "model": self.model,
            "query": query,
            "documents": passages,
            "return_documents": False,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(COHERE_RERANK_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=config.http_timeout) as client:
                    response = await client.post(COHERE_RERANK_URL, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                service="cohere",
                message=f"Cohere rerank failed: {e}",
                original_error=e,
            ) from e

        return [
            RerankScore(index=item["index"], score=min(1.0, max(0.0, item["relevance_score"])))
            for item in data.get("results", [])
        ]


class LLMCrossEncoder(CrossEncoder):
    """Asks an LLM judge to score each passage, one call per passage."""

    def __init__(self, judge: RelevanceJudge | None = None):
        self.judge = judge or RelevanceJudge()

    async def rerank(self, query: str, passages: list[str]) -> list[RerankScore]:
        scores = await asyncio.gather(*(self.judge.judge(query, p) for p in passages))
        return [RerankScore(index=i, score=score) for i, score in enumerate(scores)]


class UniformCrossEncoder(CrossEncoder):
    """No-op re-ranker scoring every passage 0.5."""

    async def rerank(self, query: str, passages: list[str]) -> list[RerankScore]:
        return [RerankScore(index=i, score=0.5) for i in range(len(passages))]


def create_cross_encoder(provider: str | None = None) -> CrossEncoder:
    """Build the cross-encoder selected by ``CROSS_ENCODER_PROVIDER``."""
    provider = provider or config.cross_encoder_provider
    logfire.debug("Creating cross-encoder", provider=provider)
    if provider == "cohere":
        return CohereCrossEncoder()
    if provider == "none":
        return UniformCrossEncoder()
    if provider == "llm":
        return LLMCrossEncoder()
    raise ValueError(f"Unknown cross-encoder provider: {provider}")


__all__ = [
    "COHERE_RERANK_URL",
    "CrossEncoder",
    "CohereCrossEncoder",
    "LLMCrossEncoder",
    "UniformCrossEncoder",
    "create_cross_encoder",
]
