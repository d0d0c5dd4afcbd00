"""Shared fixtures and in-process fakes for the tailoring pipeline tests."""

from collections.abc import Callable
from typing import Any

import pytest

from context_tailor.core.logging import configure_logging
from context_tailor.models.compression import CompressedChunk, CompressionLevel
from context_tailor.models.scoring import RerankScore, RetrievedChunk, ScoredChunk
from context_tailor.services.cross_encoder import CrossEncoder
from context_tailor.utils.text import estimate_tokens


@pytest.fixture(scope="session", autouse=True)
def _logging():
    configure_logging()


class FakeRetriever:
    """Returns canned candidates per query; queries listed in ``failing`` raise."""

    def __init__(
        self,
        candidates: list[RetrievedChunk] | None = None,
        by_query: dict[str, list[RetrievedChunk]] | None = None,
        failing: set[str] | None = None,
    ):
        self.candidates = candidates or []
        self.by_query = by_query or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, query: str, project_id: str, top_k: int, **filters: Any):
        self.calls.append((query, project_id, top_k))
        if query in self.failing:
            raise RuntimeError(f"index unavailable for {query!r}")
        return list(self.by_query.get(query, self.candidates))[:top_k]


class FixedCrossEncoder(CrossEncoder):
    """Returns preset scores by passage position."""

    def __init__(self, scores: list[float] | None = None, error: Exception | None = None):
        self.scores = scores
        self.error = error

    async def rerank(self, query: str, passages: list[str]) -> list[RerankScore]:
        if self.error is not None:
            raise self.error
        scores = self.scores if self.scores is not None else [0.5] * len(passages)
        return [RerankScore(index=i, score=s) for i, s in enumerate(scores[: len(passages)])]


class FakeSummarizer:
    """Keeps the first ``words`` words; fails when ``error`` is set."""

    def __init__(self, words: int = 10, error: Exception | None = None):
        self.words = words
        self.error = error
        self.calls = 0

    async def summarize(self, text: str, max_tokens: int) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return " ".join(text.split()[: self.words])


@pytest.fixture
def make_retrieved() -> Callable[..., RetrievedChunk]:
    def _make(
        chunk_id: str,
        score: float,
        content: str | None = None,
        document_id: str = "doc-1",
        **metadata: Any,
    ) -> RetrievedChunk:
        return RetrievedChunk(
            chunk_id=chunk_id,
            document_id=document_id,
            content=content or f"content of {chunk_id}",
            score=score,
            metadata=metadata,
        )

    return _make


@pytest.fixture
def make_scored() -> Callable[..., ScoredChunk]:
    def _make(
        chunk_id: str,
        final_score: float,
        content: str | None = None,
        document_id: str = "doc-1",
        **metadata: Any,
    ) -> ScoredChunk:
        return ScoredChunk(
            chunk_id=chunk_id,
            document_id=document_id,
            content=content or f"content of {chunk_id}",
            bi_encoder_score=final_score,
            cross_encoder_score=final_score,
            final_score=final_score,
            metadata=metadata,
        )

    return _make


@pytest.fixture
def make_compressed() -> Callable[..., CompressedChunk]:
    def _make(
        chunk_id: str,
        content: str,
        relevance: float = 0.8,
        document_id: str | None = "doc-1",
        **metadata: Any,
    ) -> CompressedChunk:
        tokens = estimate_tokens(content)
        return CompressedChunk(
            original_chunk_id=chunk_id,
            compression_level=CompressionLevel.FULL,
            content=content,
            original_token_count=tokens,
            compressed_token_count=tokens,
            relevance_score=relevance,
            document_id=document_id,
            metadata=metadata,
        )

    return _make


@pytest.fixture
def words() -> Callable[[int, str], str]:
    """Text of exactly ``n`` words."""

    def _words(n: int, stem: str = "word") -> str:
        return " ".join(f"{stem}{i}" for i in range(n))

    return _words
