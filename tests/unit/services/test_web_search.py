"""Tests for web search providers, the fallback manager, and the content cache."""

import json

import httpx
import pytest

from context_tailor.core.exceptions import (
    ExternalServiceError,
    ProviderNotConfiguredError,
    WebSearchUnavailableError,
)
from context_tailor.models.web_search import WebSearchQuery, WebSearchResponse, WebSearchResult
from context_tailor.services.web_content_cache import WebContentCache, normalize_url
from context_tailor.services.web_results import (
    WEB_CHUNK_WEIGHT,
    WEB_DOCUMENT_ID,
    hash_url,
    process_web_results,
    to_web_results,
    web_chunk_id,
)
from context_tailor.services.web_search import (
    BRAVE_API_URL,
    TAVILY_API_URL,
    BraveSearchProvider,
    TavilySearchProvider,
    WebSearchManager,
    WebSearchProvider,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class StaticProvider(WebSearchProvider):
    """Answers every query with one result, or fails for listed queries."""

    def __init__(self, name: str, available: bool = True, failing: set[str] | None = None):
        super().__init__()
        self.name = name
        self.available = available
        self.failing = failing or set()
        self.queries: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def search(self, query: WebSearchQuery) -> WebSearchResponse:
        self.queries.append(query.query)
        if query.query in self.failing or "*" in self.failing:
            raise ExternalServiceError(service=self.name, message="boom")
        return WebSearchResponse(
            results=[
                WebSearchResult(
                    title=f"{query.query} result",
                    url=f"https://example.com/{query.query.replace(' ', '-')}",
                    snippet="snippet",
                    score=0.8,
                    provider="tavily",
                )
            ],
            query=query.query,
            provider=self.name,
            latency_ms=1,
        )


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestTavilyProvider:
    async def test_maps_results(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "query": "jwt auth",
                    "results": [
                        {
                            "title": "JWT guide",
                            "url": "https://jwt.io/introduction",
                            "content": "JSON Web Tokens are...",
                            "score": 1.7,
                            "raw_content": "full page",
                        }
                    ],
                },
            )

        async with mock_client(handler) as client:
            provider = TavilySearchProvider(api_key="tv-key", client=client)
            response = await provider.search(WebSearchQuery(query="jwt auth", max_results=3))

        assert seen["url"] == TAVILY_API_URL
        assert seen["body"]["api_key"] == "tv-key"
        assert seen["body"]["max_results"] == 3
        assert response.provider == "tavily"
        result = response.results[0]
        assert result.snippet == "JSON Web Tokens are..."
        assert result.score == 1.0
        assert result.raw_content == "full page"

    async def test_http_error_becomes_external_service_error(self):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            provider = TavilySearchProvider(api_key="tv-key", client=client)
            with pytest.raises(ExternalServiceError) as exc_info:
                await provider.search(WebSearchQuery(query="q"))

        assert exc_info.value.service == "tavily"

    async def test_missing_key_is_not_configured(self):
        provider = TavilySearchProvider(api_key="")
        assert not provider.is_available()
        with pytest.raises(ProviderNotConfiguredError):
            await provider.search(WebSearchQuery(query="q"))


class TestBraveProvider:
    async def test_scores_by_rank(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url).startswith(BRAVE_API_URL)
            assert request.headers["X-Subscription-Token"] == "br-key"
            assert request.url.params["q"] == "rate limiting"
            return httpx.Response(
                200,
                json={
                    "query": {"original": "rate limiting"},
                    "web": {
                        "results": [
                            {"title": "One", "url": "https://a.dev/1", "description": "first"},
                            {"title": "Two", "url": "https://a.dev/2", "description": "second"},
                        ]
                    },
                },
            )

        async with mock_client(handler) as client:
            provider = BraveSearchProvider(api_key="br-key", client=client)
            response = await provider.search(WebSearchQuery(query="rate limiting"))

        assert [r.score for r in response.results] == [1.0, 0.5]
        assert response.results[1].snippet == "second"
        assert response.results[0].provider == "brave"

    async def test_missing_web_section_is_empty(self):
        async with mock_client(lambda request: httpx.Response(200, json={})) as client:
            provider = BraveSearchProvider(api_key="br-key", client=client)
            response = await provider.search(WebSearchQuery(query="q"))

        assert response.results == []
        assert response.query == "q"


class TestWebSearchManager:
    async def test_falls_back_to_next_provider(self):
        tavily = StaticProvider("tavily", failing={"*"})
        brave = StaticProvider("brave")
        manager = WebSearchManager(providers=[tavily, brave])

        response = await manager.search("jwt auth")

        assert response.provider == "brave"
        assert tavily.queries == ["jwt auth"]
        assert brave.queries == ["jwt auth"]

    async def test_unavailable_providers_are_skipped(self):
        tavily = StaticProvider("tavily", available=False)
        brave = StaticProvider("brave")
        manager = WebSearchManager(providers=[tavily, brave])

        response = await manager.search("q")

        assert response.provider == "brave"
        assert tavily.queries == []

    async def test_all_failed_raises_unavailable(self):
        manager = WebSearchManager(
            providers=[
                StaticProvider("tavily", failing={"*"}),
                StaticProvider("brave", available=False),
            ]
        )

        with pytest.raises(WebSearchUnavailableError) as exc_info:
            await manager.search("q")

        assert exc_info.value.details["attempted"] == ["tavily"]
        assert "tavily" in exc_info.value.details["errors"]

    def test_is_available(self):
        assert not WebSearchManager(providers=[StaticProvider("x", available=False)]).is_available()
        assert WebSearchManager(providers=[StaticProvider("x")]).is_available()

    async def test_search_many_drops_failed_queries(self):
        manager = WebSearchManager(providers=[StaticProvider("tavily", failing={"bad"})])

        responses = await manager.search_many(["good", "bad", "also good"])

        assert [r.query for r in responses] == ["good", "also good"]

    async def test_results_are_written_through_to_cache(self):
        cache = WebContentCache()
        cache.set("https://example.com/q", "cached body")
        manager = WebSearchManager(providers=[StaticProvider("tavily")], cache=cache)

        response = await manager.search("q")

        assert response.results[0].raw_content == "cached body"

    async def test_fetch_content_uses_cache(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, text="<html>page</html>")

        async with mock_client(handler) as client:
            manager = WebSearchManager(providers=[], client=client)
            first = await manager.fetch_content("https://docs.example.com/page")
            second = await manager.fetch_content("https://DOCS.example.com/page/")

        assert first == second == "<html>page</html>"
        assert len(calls) == 1

    async def test_fetch_failure_raises(self):
        async with mock_client(lambda request: httpx.Response(404)) as client:
            manager = WebSearchManager(providers=[], client=client)
            with pytest.raises(ExternalServiceError):
                await manager.fetch_content("https://example.com/missing")


class TestWebContentCache:
    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = WebContentCache(ttl_seconds=10, clock=clock)
        cache.set("https://a.dev", "body")

        clock.now = 10
        assert cache.get("https://a.dev") == "body"
        clock.now = 10.5
        assert cache.get("https://a.dev") is None
        assert len(cache) == 0
        assert cache.metrics["hits"] == 1
        assert cache.metrics["misses"] == 1

    def test_oldest_entry_is_evicted(self):
        cache = WebContentCache(max_entries=2)
        cache.set("https://a.dev", "a")
        cache.set("https://b.dev", "b")
        cache.set("https://a.dev", "a2")
        cache.set("https://c.dev", "c")

        assert "https://a.dev" not in cache
        assert "https://b.dev" in cache
        assert cache.get("https://c.dev") == "c"
        assert cache.metrics["evictions"] == 1

    def test_clear(self):
        cache = WebContentCache()
        cache.set("https://a.dev", "a")
        cache.clear()
        assert len(cache) == 0

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValueError):
            WebContentCache(max_entries=0)

    def test_normalize_url(self):
        assert normalize_url("HTTPS://Example.COM/Docs/#intro") == "https://example.com/Docs"
        assert normalize_url("https://example.com/a?b=1") == "https://example.com/a?b=1"


class TestWebResults:
    def test_hash_url(self):
        assert hash_url("a") == "2b5c4"
        assert hash_url("https://a.dev") == hash_url("https://a.dev")
        assert web_chunk_id("a") == "web-2b5c4"

    def test_process_web_results_discounts_scores(self):
        results = [
            WebSearchResult(
                title="T", url="https://a.dev", snippet="s", score=0.8, provider="tavily"
            ),
            WebSearchResult(
                title="U",
                url="https://b.dev",
                snippet="s",
                score=0.5,
                raw_content="full",
                provider="brave",
            ),
        ]

        chunks = process_web_results(results)

        assert chunks[0].final_score == pytest.approx(0.8 * WEB_CHUNK_WEIGHT)
        assert chunks[0].bi_encoder_score == 0.8
        assert chunks[0].document_id == WEB_DOCUMENT_ID
        assert chunks[0].metadata["source_type"] == "WEB_SEARCH"
        assert chunks[0].metadata["url"] == "https://a.dev"
        assert chunks[0].content == "s"
        assert chunks[1].content == "full"
        assert [c.rank for c in chunks] == [0, 1]

    def test_to_web_results(self):
        result = WebSearchResult(
            title="T", url="https://a.dev", snippet="s", score=0.8, provider="tavily"
        )
        (web,) = to_web_results([result])
        assert web.url == "https://a.dev"
        assert web.content is None
        assert web.fetched_at
