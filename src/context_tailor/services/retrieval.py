"""First-pass semantic retrieval over a project's vector collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import logfire

from context_tailor.models.scoring import RetrievedChunk

from .embeddings import Embedder
from .vector_store import Filter, VectorStore


def collection_name(project_id: str) -> str:
    return f"project_{project_id}"


class Retriever(Protocol):
    async def search(
        self,
        query: str,
        project_id: str,
        top_k: int,
        *,
        document_ids: list[str] | None = None,
        document_types: list[str] | None = None,
        min_score: float | None = None,
    ) -> list[RetrievedChunk]: ...


@dataclass
class DocumentRetriever:
    """Embeds a query and returns the nearest chunks of one project.

    Chunk content and document identity are hydrated from vector metadata
    (``content``, ``document_id``, ``document_type``, ``filename``); items
    without content are skipped.
    """

    embedder: Embedder
    vector_store: VectorStore

    async def search(
        self,
        query: str,
        project_id: str,
        top_k: int,
        *,
        document_ids: list[str] | None = None,
        document_types: list[str] | None = None,
        min_score: float | None = None,
    ) -> list[RetrievedChunk]:
        embedding = await self.embedder.embed_text(query)

        filter: Filter | None = None
        if document_ids:
            filter = {"document_id": {"$in": list(document_ids)}}

        hits = await self.vector_store.query(collection_name(project_id), embedding, top_k, filter)

        results: list[RetrievedChunk] = []
        for hit in hits:
            metadata = dict(hit.metadata)
            content = metadata.pop("content", None)
            if not content:
                continue
            if min_score is not None and hit.score < min_score:
                continue
            if document_types and metadata.get("document_type") not in document_types:
                continue
            results.append(
                RetrievedChunk(
                    chunk_id=hit.id,
                    document_id=str(metadata.get("document_id", "")),
                    content=content,
                    score=hit.score,
                    metadata=metadata,
                )
            )

        logfire.debug(
            "Retrieved candidates",
            project_id=project_id,
            requested=top_k,
            hits=len(hits),
            returned=len(results),
        )
        return results


__all__ = ["DocumentRetriever", "Retriever", "collection_name"]
