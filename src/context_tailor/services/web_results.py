"""Converts web search hits into pipeline chunks and synthesizer inputs."""

from datetime import UTC, datetime

from context_tailor.models.scoring import ScoredChunk
from context_tailor.models.synthesis import SourceType, WebResult
from context_tailor.models.web_search import WebSearchResult

# web hits rank below project documents of comparable score
WEB_CHUNK_WEIGHT = 0.85
WEB_DOCUMENT_ID = "web-search"


def hash_url(url: str) -> str:
    """Stable djb2-xor hash of ``url`` as unsigned 32-bit hex."""
    h = 5381
    for ch in url:
        h = (((h << 5) + h) ^ ord(ch)) & 0xFFFFFFFF
    return format(h, "x")


def web_chunk_id(url: str) -> str:
    return f"web-{hash_url(url)}"


def process_web_results(results: list[WebSearchResult]) -> list[ScoredChunk]:
    """Turn search hits into discounted ScoredChunks for the scoring pool."""
    fetched_at = datetime.now(UTC).isoformat()
    return [
        ScoredChunk(
            chunk_id=web_chunk_id(result.url),
            document_id=WEB_DOCUMENT_ID,
            content=result.raw_content or result.snippet,
            bi_encoder_score=result.score,
            cross_encoder_score=result.score,
            final_score=result.score * WEB_CHUNK_WEIGHT,
            metadata={
                "source_type": SourceType.WEB_SEARCH.value,
                "url": result.url,
                "title": result.title,
                "provider": result.provider,
                "fetched_at": fetched_at,
            },
            rank=index,
        )
        for index, result in enumerate(results)
    ]


def to_web_results(results: list[WebSearchResult]) -> list[WebResult]:
    fetched_at = datetime.now(UTC).isoformat()
    return [
        WebResult(
            url=r.url,
            title=r.title,
            snippet=r.snippet,
            content=r.raw_content,
            fetched_at=fetched_at,
        )
        for r in results
    ]


__all__ = [
    "WEB_CHUNK_WEIGHT",
    "WEB_DOCUMENT_ID",
    "hash_url",
    "web_chunk_id",
    "process_web_results",
    "to_web_results",
]
