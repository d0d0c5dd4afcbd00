"""Web search providers and the fallback-chain manager used for gap filling."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, cast

import httpx
import logfire

from context_tailor.core.config import config
from context_tailor.core.exceptions import (
    ExternalServiceError,
    ProviderNotConfiguredError,
    WebSearchUnavailableError,
)
from context_tailor.models.web_search import WebSearchQuery, WebSearchResponse, WebSearchResult

from .web_content_cache import WebContentCache

TAVILY_API_URL = "https://api.tavily.com/search"
BRAVE_API_URL = "https://api.search.brave.com/res/v1/web/search"


class WebSearchProvider(ABC):
    """Abstract base class for search providers.

    Providers share an optional ``httpx.AsyncClient``; without one, each call
    opens a short-lived client with the configured timeout.
    """

    name: str

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider has what it needs (credentials) to be tried."""

    @abstractmethod
    async def search(self, query: WebSearchQuery) -> WebSearchResponse:
        pass

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=config.http_timeout) as client:
                    response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                service=self.name,
                message=f"{self.name} search failed: {e}",
                original_error=e,
            ) from e
        return response


class TavilySearchProvider(WebSearchProvider):
    """Tavily search API provider."""

    name = "tavily"

    def __init__(self, api_key: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(client)
        self.api_key = api_key if api_key is not None else config.tavily_api_key

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: WebSearchQuery) -> WebSearchResponse:
        if not self.api_key:
            raise ProviderNotConfiguredError(self.name, "TAVILY_API_KEY")

        start = time.time()
        response = await self._request(
            "POST",
            TAVILY_API_URL,
            json={
                "api_key": self.api_key,
                "query": query.query,
                "search_depth": query.search_depth,
                "max_results": query.max_results,
                "include_domains": query.include_domains,
                "exclude_domains": query.exclude_domains,
            },
        )
        data = response.json()

        results = [
            WebSearchResult(
                title=item.get("title", ""),
                url=item["url"],
                snippet=item.get("content", ""),
                score=min(1.0, max(0.0, float(item.get("score", 0.0)))),
                published_date=item.get("published_date"),
                raw_content=item.get("raw_content"),
                provider="tavily",
            )
            for item in data.get("results", [])
        ]
        return WebSearchResponse(
            results=results,
            query=data.get("query", query.query),
            provider=self.name,
            latency_ms=int((time.time() - start) * 1000),
        )


class BraveSearchProvider(WebSearchProvider):
    """Brave search API provider. Brave returns no scores, so rank i scores 1/(i+1)."""

    name = "brave"

    def __init__(self, api_key: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(client)
        self.api_key = api_key if api_key is not None else config.brave_api_key

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: WebSearchQuery) -> WebSearchResponse:
        if not self.api_key:
            raise ProviderNotConfiguredError(self.name, "BRAVE_SEARCH_API_KEY")

        start = time.time()
        response = await self._request(
            "GET",
            BRAVE_API_URL,
            params={"q": query.query, "count": str(query.max_results)},
            headers={"Accept": "application/json", "X-Subscription-Token": self.api_key},
        )
        data = response.json()

        raw_results = (data.get("web") or {}).get("results", [])
        results = [
            WebSearchResult(
                title=item.get("title", ""),
                url=item["url"],
                snippet=item.get("description", ""),
                score=1 / (index + 1),
                published_date=item.get("age"),
                provider="brave",
            )
            for index, item in enumerate(raw_results)
        ]
        return WebSearchResponse(
            results=results,
            query=(data.get("query") or {}).get("original", query.query),
            provider=self.name,
            latency_ms=int((time.time() - start) * 1000),
        )


class WebSearchManager:
    """Walks an ordered provider list until one answers.

    Unavailable providers are skipped without a call; a provider that raises
    is logged and the next one is tried. The manager owns a WebContentCache
    that result contents are written through to.
    """

    def __init__(
        self,
        providers: list[WebSearchProvider] | None = None,
        cache: WebContentCache | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._client = client
        self.providers = (
            providers
            if providers is not None
            else [TavilySearchProvider(client=client), BraveSearchProvider(client=client)]
        )
        self.cache = cache or WebContentCache()

    def is_available(self) -> bool:
        return any(p.is_available() for p in self.providers)

    async def search(self, query: str | WebSearchQuery, max_results: int = 5) -> WebSearchResponse:
        request = (
            query
            if isinstance(query, WebSearchQuery)
            else WebSearchQuery(query=query, max_results=max_results)
        )

        attempted: list[str] = []
        errors: dict[str, str] = {}
        for provider in self.providers:
            if not provider.is_available():
                logfire.debug("Skipping unavailable search provider", provider=provider.name)
                continue
            attempted.append(provider.name)
            try:
                response = await provider.search(request)
            except Exception as e:
                errors[provider.name] = str(e)
                logfire.warning(
                    "Search provider failed, trying next",
                    provider=provider.name,
                    query=request.query,
                    error=str(e),
                )
                continue

            logfire.info(
                "Web search complete",
                provider=response.provider,
                results=len(response.results),
                latency_ms=response.latency_ms,
            )
            return self._apply_cache(response)

        raise WebSearchUnavailableError(request.query, attempted, errors)

    async def search_many(
        self, queries: list[str], max_results: int = 5
    ) -> list[WebSearchResponse]:
        """Run searches concurrently; failed queries are logged and left out."""
        results = await asyncio.gather(
            *(self.search(q, max_results) for q in queries), return_exceptions=True
        )

        responses: list[WebSearchResponse] = []
        for query, result in zip(queries, results, strict=True):
            if isinstance(result, BaseException):
                logfire.error(f"Search failed for query '{query}': {result}")
                continue
            responses.append(cast(WebSearchResponse, result))
        return responses

    async def fetch_content(self, url: str) -> str:
        """GET a page's text, served from the cache within the TTL window."""
        cached = self.cache.get(url)
        if cached is not None:
            return cached

        try:
            if self._client is not None:
                response = await self._client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=config.http_timeout) as client:
                    response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                service="web-fetch", message=f"Fetching {url} failed: {e}", original_error=e
            ) from e

        self.cache.set(url, response.text)
        return response.text

    def _apply_cache(self, response: WebSearchResponse) -> WebSearchResponse:
        results: list[WebSearchResult] = []
        for result in response.results:
            if result.raw_content:
                self.cache.set(result.url, result.raw_content)
                results.append(result)
                continue
            cached = self.cache.get(result.url)
            results.append(result.model_copy(update={"raw_content": cached}) if cached else result)
        return response.model_copy(update={"results": results})


__all__ = [
    "TAVILY_API_URL",
    "BRAVE_API_URL",
    "WebSearchProvider",
    "TavilySearchProvider",
    "BraveSearchProvider",
    "WebSearchManager",
]
