"""Quality scoring for assembled context.

Four sub-scores in [0, 1] are combined into a 0-100 composite:

- coverage: share of the task's key terms present in the included text
- diversity: number of distinct documents and source types
- relevance: mean final score of included chunks, penalized for weak ones
- compression: how close the output/raw token ratio is to the 0.2-0.5 band
"""

import re
from dataclasses import dataclass

from context_tailor.models.compression import CompressedChunk
from context_tailor.models.quality import QualityScore, QualitySubScores
from context_tailor.utils.text import round_half_up

QUALITY_WEIGHTS: dict[str, float] = {
    "coverage": 0.35,
    "relevance": 0.30,
    "diversity": 0.20,
    "compression": 0.15,
}

LOW_RELEVANCE = 0.3

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


@dataclass(frozen=True)
class ChunkInfo:
    """What the scorer needs to know about one included chunk."""

    document_id: str
    final_score: float
    source_type: str = "document"


def chunk_infos(chunks: list[CompressedChunk]) -> list[ChunkInfo]:
    return [
        ChunkInfo(
            document_id=chunk.document_id or chunk.original_chunk_id,
            final_score=chunk.relevance_score,
            source_type=str(chunk.metadata.get("source_type", "document")),
        )
        for chunk in chunks
    ]


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def score_coverage(task: str, chunk_contents: list[str]) -> float:
    keywords = list(
        dict.fromkeys(w for w in _NON_ALNUM.sub(" ", task.lower()).split() if len(w) >= 4)
    )
    if not keywords:
        return 1.0
    combined = " ".join(chunk_contents).lower()
    covered = sum(1 for keyword in keywords if keyword in combined)
    return covered / len(keywords)


def score_diversity(sources: list[ChunkInfo]) -> float:
    if not sources:
        return 0.0
    doc_count = len({s.document_id for s in sources})
    type_count = len({s.source_type for s in sources})

    if doc_count >= 3:
        base = 0.8
    elif doc_count == 2:
        base = 0.5
    else:
        base = 0.2
    bonus = 0.2 if type_count > 1 else 0.0
    return min(1.0, base + bonus)


def score_relevance(chunks: list[ChunkInfo]) -> float:
    if not chunks:
        return 0.0
    scores = [c.final_score for c in chunks]
    average = sum(scores) / len(scores)
    low_share = sum(1 for s in scores if s < LOW_RELEVANCE) / len(scores)
    return _clamp(average - low_share * 0.2)


def score_compression(raw_token_count: int, output_token_count: int) -> float:
    if raw_token_count == 0:
        return 0.5
    ratio = output_token_count / raw_token_count
    if 0.2 <= ratio <= 0.5:
        return 1.0
    if ratio > 0.5:
        return max(0.5, 1 - (ratio - 0.5))
    return 0.3 + (ratio / 0.2) * 0.7


def generate_suggestions(sub_scores: QualitySubScores) -> list[str]:
    suggestions = []
    if sub_scores.coverage < 0.5:
        suggestions.append(
            "Try adding more documentation that covers the key topics in your task."
        )
    if sub_scores.relevance < 0.5:
        suggestions.append("Consider refining your task description to be more specific.")
    if sub_scores.diversity < 0.5:
        suggestions.append(
            "Context relies heavily on a single source. "
            "Consider uploading more varied documentation."
        )
    if sub_scores.compression < 0.5:
        suggestions.append(
            "Your documents may contain too much boilerplate. "
            "Consider uploading more focused content."
        )
    return suggestions


def weighted_overall(sub_scores: QualitySubScores, weights: dict[str, float]) -> int:
    total = sum(getattr(sub_scores, name) * weight for name, weight in weights.items())
    return max(0, min(100, round_half_up(total * 100)))


def score_context(
    task: str,
    chunk_contents: list[str],
    sources: list[ChunkInfo],
    raw_token_count: int,
    output_token_count: int,
) -> QualityScore:
    """Score the context assembled for ``task``."""
    sub_scores = QualitySubScores(
        coverage=score_coverage(task, chunk_contents),
        diversity=score_diversity(sources),
        relevance=score_relevance(sources),
        compression=_clamp(score_compression(raw_token_count, output_token_count)),
    )
    return QualityScore(
        overall=weighted_overall(sub_scores, QUALITY_WEIGHTS),
        sub_scores=sub_scores,
        suggestions=generate_suggestions(sub_scores),
    )


__all__ = [
    "QUALITY_WEIGHTS",
    "ChunkInfo",
    "chunk_infos",
    "score_coverage",
    "score_diversity",
    "score_relevance",
    "score_compression",
    "generate_suggestions",
    "weighted_overall",
    "score_context",
]
