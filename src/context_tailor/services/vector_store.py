"""Vector store seam and an in-memory cosine adapter.

Production deployments plug a real index in behind ``VectorStore``; the
in-memory adapter serves local runs and tests.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol

import numpy as np
from pydantic import BaseModel, Field

Filter = dict[str, Any]


class VectorItem(BaseModel):
    id: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorSearchResult(BaseModel):
    """A nearest-neighbour hit; ``score`` is a similarity (higher is closer)."""

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorStore(Protocol):
    async def upsert(self, collection: str, items: list[VectorItem]) -> None: ...

    async def query(
        self,
        collection: str,
        embedding: list[float],
        top_k: int,
        filter: Filter | None = None,
    ) -> list[VectorSearchResult]: ...

    async def delete(self, collection: str, ids: list[str]) -> None: ...

    async def delete_collection(self, collection: str) -> None: ...


def distance_to_score(distance: float) -> float:
    """Convert a cosine distance returned by an index into a similarity."""
    return 1.0 - distance


def matches_filter(metadata: dict[str, Any], filter: Filter | None) -> bool:
    """Evaluate an equality / ``{"$in": [...]}`` filter against item metadata."""
    if not filter:
        return True
    for key, expected in filter.items():
        value = metadata.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if value not in expected["$in"]:
                return False
        elif value != expected:
            return False
    return True


class InMemoryVectorStore:
    """Brute-force cosine search over numpy arrays, one dict per collection."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, VectorItem]] = {}
        self._lock = threading.Lock()

    async def upsert(self, collection: str, items: list[VectorItem]) -> None:
        with self._lock:
            bucket = self._collections.setdefault(collection, {})
            for item in items:
                bucket[item.id] = item

    async def query(
        self,
        collection: str,
        embedding: list[float],
        top_k: int,
        filter: Filter | None = None,
    ) -> list[VectorSearchResult]:
        with self._lock:
            items = [
                item
                for item in self._collections.get(collection, {}).values()
                if matches_filter(item.metadata, filter)
            ]
        if not items or top_k <= 0:
            return []

        matrix = np.asarray([item.embedding for item in items], dtype=float)
        query = np.asarray(embedding, dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        sims = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        # stable sort keeps insertion order among equal similarities
        order = np.argsort(-sims, kind="stable")[:top_k]
        return [
            VectorSearchResult(
                id=items[i].id,
                score=float(sims[i]),
                metadata=dict(items[i].metadata),
            )
            for i in order
        ]

    async def delete(self, collection: str, ids: list[str]) -> None:
        with self._lock:
            bucket = self._collections.get(collection)
            if bucket is None:
                return
            for item_id in ids:
                bucket.pop(item_id, None)

    async def delete_collection(self, collection: str) -> None:
        with self._lock:
            self._collections.pop(collection, None)

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, {}))


__all__ = [
    "Filter",
    "VectorItem",
    "VectorSearchResult",
    "VectorStore",
    "InMemoryVectorStore",
    "distance_to_score",
    "matches_filter",
]
