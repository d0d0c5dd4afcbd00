"""Embedding layer used for first-pass (bi-encoder) retrieval.

Backends:
- OpenAI embeddings through ``openai.AsyncOpenAI``
- local sentence-transformers models (``pip install context-tailor[local]``)

``EmbeddingService`` wraps a backend with a per-text cache and exposes the
``Embedder`` protocol the retriever depends on.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Any, Protocol

import logfire
from openai import AsyncOpenAI

from context_tailor.core.config import config
from context_tailor.core.exceptions import ExternalServiceError, ProviderNotConfiguredError

Vector = list[float]


class Embedder(Protocol):
    """What retrieval needs from an embedding model."""

    async def embed_text(self, text: str) -> Vector: ...

    async def embed_batch(self, texts: list[str]) -> list[Vector]: ...


class EmbeddingBackend(Protocol):
    """Protocol for raw embedding backends."""

    async def embed(self, texts: list[str]) -> list[Vector]:
        """Embed a batch of texts into vector representations."""


@dataclass
class OpenAIEmbeddingBackend:
    """OpenAI embeddings backend."""

    model: str = "text-embedding-3-small"
    api_key: str | None = None
    _client: AsyncOpenAI | None = field(default=None, init=False, repr=False)

    def _ensure_client(self) -> AsyncOpenAI:
        if self._client is None:
            key = self.api_key or config.openai_api_key
            if not key:
                raise ProviderNotConfiguredError("openai-embeddings", "OPENAI_API_KEY")
            self._client = AsyncOpenAI(api_key=key, timeout=config.http_timeout)
        return self._client

    async def embed(self, texts: list[str]) -> list[Vector]:
        client = self._ensure_client()
        try:
            resp = await client.embeddings.create(model=self.model, input=texts)
        except Exception as exc:
            raise ExternalServiceError(
                service="openai-embeddings",
                message=f"Embedding request failed: {exc}",
                original_error=exc,
            ) from exc
        return [list(d.embedding) for d in resp.data]


@dataclass
class LocalEmbeddingBackend:
    """Local sentence-transformers backend.

    The model is loaded on first use. ``sentence-transformers`` ships in the
    ``local`` extra; without it, ``embed`` raises ProviderNotConfiguredError.
    """

    model: str = "all-MiniLM-L6-v2"
    _model: Any | None = field(default=None, init=False, repr=False)

    def _ensure_model(self) -> None:
        if self._model is None:  # pragma: no cover - optional dependency
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as exc:
                raise ProviderNotConfiguredError(
                    "local-embeddings", "sentence-transformers (install the 'local' extra)"
                ) from exc
            logfire.info("Loading local embedding model", model=self.model)
            self._model = SentenceTransformer(self.model)

    async def embed(self, texts: list[str]) -> list[Vector]:  # pragma: no cover - heavy model
        self._ensure_model()
        # encode is CPU bound; keep the event loop free
        encoded = await asyncio.to_thread(self._model.encode, texts, convert_to_numpy=True)
        return [vec.tolist() for vec in encoded]


@dataclass
class EmbeddingService:
    """Selects a backend and caches embeddings per text."""

    backend: EmbeddingBackend
    cache_enabled: bool = True
    _cache: dict[str, Vector] = field(default_factory=dict, init=False, repr=False)

    async def embed_text(self, text: str) -> Vector:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        """Embed ``texts`` in order, computing only the ones not cached yet."""
        if not texts:
            return []

        to_compute: list[tuple[int, str]] = []
        vectors: list[Vector] = [[] for _ in texts]

        for i, t in enumerate(texts):
            key = self._hash_text(t)
            if self.cache_enabled and key in self._cache:
                vectors[i] = self._cache[key]
            else:
                to_compute.append((i, t))

        if to_compute:
            computed = await self.backend.embed([t for _, t in to_compute])
            for (i, original_text), vec in zip(to_compute, computed, strict=True):
                vectors[i] = vec
                if self.cache_enabled:
                    self._cache[self._hash_text(original_text)] = vec

        return vectors

    @staticmethod
    def _hash_text(text: str) -> str:
        return sha256(text.encode("utf-8")).hexdigest()


def create_embedder(provider: str | None = None) -> EmbeddingService:
    """Build the embedder selected by ``EMBEDDING_PROVIDER`` (local or openai)."""
    provider = provider or config.embedding_provider
    if provider == "openai":
        backend: EmbeddingBackend = OpenAIEmbeddingBackend(
            model=config.embedding_model or "text-embedding-3-small"
        )
    elif provider == "local":
        backend = LocalEmbeddingBackend(model=config.embedding_model or "all-MiniLM-L6-v2")
    else:
        raise ValueError(f"Unknown embedding provider: {provider}")
    logfire.debug("Embedder created", provider=provider)
    return EmbeddingService(backend=backend)


def cosine_similarity(u: Iterable[float], v: Iterable[float]) -> float:
    """Compute cosine similarity with safety checks."""
    u_list = list(u)
    v_list = list(v)
    if not u_list or not v_list:
        return 0.0
    dot = sum(a * b for a, b in zip(u_list, v_list, strict=False))
    nu = math.sqrt(sum(a * a for a in u_list))
    nv = math.sqrt(sum(b * b for b in v_list))
    if nu == 0.0 or nv == 0.0:
        return 0.0
    return float(dot / (nu * nv))


__all__ = [
    "Embedder",
    "EmbeddingBackend",
    "OpenAIEmbeddingBackend",
    "LocalEmbeddingBackend",
    "EmbeddingService",
    "Vector",
    "create_embedder",
    "cosine_similarity",
]
