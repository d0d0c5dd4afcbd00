"""Tests for the embedding service and backend selection."""

import pytest

from context_tailor.core.config import config
from context_tailor.core.exceptions import ProviderNotConfiguredError
from context_tailor.models.api_models import APIKeys
from context_tailor.services.embeddings import (
    EmbeddingService,
    LocalEmbeddingBackend,
    OpenAIEmbeddingBackend,
    cosine_similarity,
    create_embedder,
)


class CountingBackend:
    def __init__(self):
        self.batches: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [[float(len(t)), 1.0] for t in texts]


class TestEmbeddingService:
    async def test_batch_preserves_order_and_caches(self):
        backend = CountingBackend()
        service = EmbeddingService(backend=backend)

        first = await service.embed_batch(["a", "bbb"])
        second = await service.embed_batch(["bbb", "cc", "a"])

        assert first == [[1.0, 1.0], [3.0, 1.0]]
        assert second == [[3.0, 1.0], [2.0, 1.0], [1.0, 1.0]]
        assert backend.batches == [["a", "bbb"], ["cc"]]

    async def test_cache_can_be_disabled(self):
        backend = CountingBackend()
        service = EmbeddingService(backend=backend, cache_enabled=False)

        await service.embed_text("a")
        await service.embed_text("a")

        assert backend.batches == [["a"], ["a"]]

    async def test_empty_batch(self):
        backend = CountingBackend()
        assert await EmbeddingService(backend=backend).embed_batch([]) == []
        assert backend.batches == []


class TestCreateEmbedder:
    def test_openai(self):
        service = create_embedder("openai")
        assert isinstance(service.backend, OpenAIEmbeddingBackend)

    def test_local(self):
        service = create_embedder("local")
        assert isinstance(service.backend, LocalEmbeddingBackend)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_embedder("word2vec")

    async def test_openai_without_key(self, monkeypatch):
        monkeypatch.setattr(config, "api_keys", APIKeys())
        with pytest.raises(ProviderNotConfiguredError):
            await OpenAIEmbeddingBackend().embed(["text"])


@pytest.mark.parametrize(
    ("u", "v", "expected"),
    [
        ([1.0, 0.0], [1.0, 0.0], 1.0),
        ([1.0, 0.0], [0.0, 1.0], 0.0),
        ([1.0, 1.0], [-1.0, -1.0], -1.0),
        ([], [1.0], 0.0),
        ([0.0, 0.0], [1.0, 1.0], 0.0),
    ],
)
def test_cosine_similarity(u, v, expected):
    assert cosine_similarity(u, v) == pytest.approx(expected)
