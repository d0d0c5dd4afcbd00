"""Relevance-tiered compression of scored chunks into a token budget."""

import asyncio
from dataclasses import dataclass

import logfire

from context_tailor.models.compression import (
    CompressedChunk,
    CompressedContext,
    CompressionConfig,
    CompressionLevel,
    CompressionStats,
    CompressionThresholds,
)
from context_tailor.models.scoring import ScoredChunk
from context_tailor.utils.text import estimate_tokens, percent, truncate_to_tokens

from .summarization import Summarizer, extract_keywords

# estimated cost of a comma-separated keyword list
KEYWORDS_TOKEN_COST = 15

# None stands for DROP
_DEMOTION: dict[CompressionLevel, CompressionLevel | None] = {
    CompressionLevel.FULL: CompressionLevel.SUMMARY,
    CompressionLevel.SUMMARY: CompressionLevel.KEYWORDS,
    CompressionLevel.KEYWORDS: None,
}


@dataclass
class _Entry:
    chunk: ScoredChunk
    level: CompressionLevel | None
    original_tokens: int


def assign_level(score: float, thresholds: CompressionThresholds) -> CompressionLevel | None:
    if score >= thresholds.full_min:
        return CompressionLevel.FULL
    if score >= thresholds.summary_min:
        return CompressionLevel.SUMMARY
    if score >= thresholds.keywords_min:
        return CompressionLevel.KEYWORDS
    return None


def _estimated_cost(entry: _Entry, summary_max_tokens: int) -> int:
    if entry.level is None:
        return 0
    if entry.level == CompressionLevel.FULL:
        return entry.original_tokens
    if entry.level == CompressionLevel.SUMMARY:
        return summary_max_tokens
    return KEYWORDS_TOKEN_COST


def _savings(original: int, compressed: int) -> int:
    if original <= 0:
        return 0
    return min(100, max(0, percent((original - compressed) / original)))


def estimate_compressed_size(
    chunks: list[ScoredChunk], config: CompressionConfig | None = None
) -> CompressionStats:
    """Stats for the initial level assignment, without demotion or LLM calls."""
    thresholds = config.thresholds if config else CompressionThresholds()
    summary_max_tokens = config.summary_max_tokens if config else 150

    counts = dict.fromkeys(("full", "summary", "keywords", "dropped"), 0)
    original = compressed = 0
    for chunk in chunks:
        tokens = estimate_tokens(chunk.content)
        original += tokens
        level = assign_level(chunk.final_score, thresholds)
        if level is None:
            counts["dropped"] += 1
        elif level == CompressionLevel.FULL:
            counts["full"] += 1
            compressed += tokens
        elif level == CompressionLevel.SUMMARY:
            counts["summary"] += 1
            compressed += summary_max_tokens
        else:
            counts["keywords"] += 1
            compressed += KEYWORDS_TOKEN_COST

    return CompressionStats(
        full_count=counts["full"],
        summary_count=counts["summary"],
        keywords_count=counts["keywords"],
        dropped_count=counts["dropped"],
        original_tokens=original,
        compressed_tokens=compressed,
        savings_percent=_savings(original, compressed),
    )


class ContextCompressor:
    """Keeps the most relevant chunks verbatim and shrinks the rest.

    Levels are assigned from final scores, then demoted from the least
    relevant chunk upward until the estimated total fits
    ``total_token_budget - reserved_tokens``. Levels only ever move toward
    DROP. After SUMMARY and KEYWORDS content is produced, entries are dropped
    lowest-relevance first if the real total still exceeds the budget.
    """

    def __init__(self, summarizer: Summarizer):
        self.summarizer = summarizer

    async def compress(
        self, chunks: list[ScoredChunk], config: CompressionConfig
    ) -> CompressedContext:
        available = config.available_budget
        ordered = sorted(chunks, key=lambda c: c.final_score, reverse=True)
        entries = [
            _Entry(
                chunk=c,
                level=assign_level(c.final_score, config.thresholds),
                original_tokens=estimate_tokens(c.content),
            )
            for c in ordered
        ]

        self._demote_to_budget(entries, available, config.summary_max_tokens)
        contents = await self._materialize(entries, config.summary_max_tokens)
        over_budget = self._enforce_floor(entries, contents, available)

        compressed_chunks: list[CompressedChunk] = []
        counts = {level: 0 for level in CompressionLevel}
        dropped = 0
        for entry, content in zip(entries, contents, strict=True):
            if entry.level is None or content is None:
                dropped += 1
                continue
            counts[entry.level] += 1
            compressed_chunks.append(
                CompressedChunk(
                    original_chunk_id=entry.chunk.chunk_id,
                    compression_level=entry.level,
                    content=content,
                    original_token_count=entry.original_tokens,
                    compressed_token_count=estimate_tokens(content),
                    relevance_score=entry.chunk.final_score,
                    document_id=entry.chunk.document_id,
                    metadata=dict(entry.chunk.metadata),
                )
            )

        original_total = sum(e.original_tokens for e in entries)
        compressed_total = sum(c.compressed_token_count for c in compressed_chunks)
        stats = CompressionStats(
            full_count=counts[CompressionLevel.FULL],
            summary_count=counts[CompressionLevel.SUMMARY],
            keywords_count=counts[CompressionLevel.KEYWORDS],
            dropped_count=dropped,
            original_tokens=original_total,
            compressed_tokens=compressed_total,
            savings_percent=_savings(original_total, compressed_total),
            over_budget=over_budget,
        )
        logfire.info(
            "Context compressed",
            full=stats.full_count,
            summary=stats.summary_count,
            keywords=stats.keywords_count,
            dropped=stats.dropped_count,
            tokens=compressed_total,
            budget=available,
            over_budget=over_budget,
        )
        return CompressedContext(
            chunks=compressed_chunks, total_token_count=compressed_total, stats=stats
        )

    @staticmethod
    def _demote_to_budget(entries: list[_Entry], available: int, summary_max_tokens: int) -> None:
        total = sum(_estimated_cost(e, summary_max_tokens) for e in entries)
        while total > available and any(e.level is not None for e in entries):
            for entry in reversed(entries):
                if total <= available:
                    break
                if entry.level is None:
                    continue
                before = _estimated_cost(entry, summary_max_tokens)
                entry.level = _DEMOTION[entry.level]
                total -= before - _estimated_cost(entry, summary_max_tokens)

    async def _materialize(
        self, entries: list[_Entry], summary_max_tokens: int
    ) -> list[str | None]:
        contents: list[str | None] = []
        summary_slots: list[int] = []
        for index, entry in enumerate(entries):
            if entry.level is None:
                contents.append(None)
            elif entry.level == CompressionLevel.FULL:
                contents.append(entry.chunk.content)
            elif entry.level == CompressionLevel.KEYWORDS:
                contents.append(extract_keywords(entry.chunk.content))
            else:
                contents.append(None)
                summary_slots.append(index)

        if summary_slots:
            summaries = await asyncio.gather(
                *(self._summarize(entries[i], summary_max_tokens) for i in summary_slots)
            )
            for index, summary in zip(summary_slots, summaries, strict=True):
                contents[index] = summary
        return contents

    async def _summarize(self, entry: _Entry, max_tokens: int) -> str:
        content = entry.chunk.content
        try:
            summary = await self.summarizer.summarize(content, max_tokens)
        except Exception as e:
            logfire.warning(
                "Summarization failed, truncating instead",
                chunk_id=entry.chunk.chunk_id,
                error=str(e),
            )
            return truncate_to_tokens(content, max_tokens)
        if not summary or estimate_tokens(summary) > entry.original_tokens:
            return content
        return summary

    @staticmethod
    def _enforce_floor(
        entries: list[_Entry], contents: list[str | None], available: int
    ) -> bool:
        def total() -> int:
            return sum(estimate_tokens(c) for c in contents if c is not None)

        if total() <= available:
            return False

        keyword_first = sorted(
            range(len(entries)),
            key=lambda i: (entries[i].level != CompressionLevel.KEYWORDS, -i),
        )
        for index in keyword_first:
            if total() <= available:
                break
            if contents[index] is None:
                continue
            contents[index] = None
            entries[index].level = None
        return total() > available


__all__ = [
    "KEYWORDS_TOKEN_COST",
    "ContextCompressor",
    "assign_level",
    "estimate_compressed_size",
]
