"""Two-stage relevance scoring: bi-encoder retrieval, cross-encoder re-ranking."""

from collections.abc import Iterable

import logfire

from context_tailor.models.scoring import RetrievedChunk, ScoredChunk, ScoringConfig

from .cross_encoder import CrossEncoder
from .retrieval import Retriever

MIN_FINAL_SCORE = 0.3


def rank_chunks(chunks: Iterable[ScoredChunk], limit: int | None = None) -> list[ScoredChunk]:
    """Sort by final score (stable), truncate, and assign ranks 0..n-1."""
    ordered = sorted(chunks, key=lambda c: c.final_score, reverse=True)
    if limit is not None:
        ordered = ordered[:limit]
    return [chunk.model_copy(update={"rank": i}) for i, chunk in enumerate(ordered)]


def merge_scored_chunks(*results: Iterable[ScoredChunk]) -> list[ScoredChunk]:
    """Merge scored lists by chunk id, keeping each chunk's best final score."""
    best: dict[str, ScoredChunk] = {}
    for chunks in results:
        for chunk in chunks:
            current = best.get(chunk.chunk_id)
            if current is None or chunk.final_score > current.final_score:
                best[chunk.chunk_id] = chunk
    return rank_chunks(best.values())


class RelevanceScorer:
    """Retrieves candidates for a query and blends both encoder scores.

    A failing cross-encoder never fails the call: the bi-encoder score stands
    in for every candidate it could not score.
    """

    def __init__(self, retriever: Retriever, cross_encoder: CrossEncoder):
        self.retriever = retriever
        self.cross_encoder = cross_encoder

    async def score(
        self,
        query: str,
        project_id: str,
        scoring_config: ScoringConfig | None = None,
    ) -> list[ScoredChunk]:
        cfg = scoring_config or ScoringConfig()

        candidates = await self.retriever.search(query, project_id, cfg.candidate_count)
        if not candidates:
            logfire.debug("No candidates retrieved", project_id=project_id)
            return []

        to_rerank = candidates[: cfg.rerank_count]
        cross_scores = await self._cross_scores(query, to_rerank)

        scored: list[ScoredChunk] = []
        for index, candidate in enumerate(to_rerank):
            bi = candidate.score
            cross = cross_scores.get(index, bi)
            final = cfg.bi_encoder_weight * bi + cfg.cross_encoder_weight * cross
            if final < MIN_FINAL_SCORE:
                continue
            scored.append(
                ScoredChunk(
                    chunk_id=candidate.chunk_id,
                    document_id=candidate.document_id,
                    content=candidate.content,
                    bi_encoder_score=bi,
                    cross_encoder_score=cross,
                    final_score=final,
                    metadata=dict(candidate.metadata),
                )
            )

        ranked = rank_chunks(scored, cfg.return_count)
        logfire.info(
            "Scored chunks",
            project_id=project_id,
            candidates=len(candidates),
            reranked=len(to_rerank),
            returned=len(ranked),
        )
        return ranked

    async def _cross_scores(self, query: str, candidates: list[RetrievedChunk]) -> dict[int, float]:
        try:
            scores = await self.cross_encoder.rerank(query, [c.content for c in candidates])
        except Exception as e:
            logfire.warning(
                "Cross-encoder failed, falling back to bi-encoder scores",
                error=str(e),
                encoder=type(self.cross_encoder).__name__,
            )
            return {i: c.score for i, c in enumerate(candidates)}
        return {s.index: s.score for s in scores}


__all__ = ["MIN_FINAL_SCORE", "RelevanceScorer", "merge_scored_chunks", "rank_chunks"]
