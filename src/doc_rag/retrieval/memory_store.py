"""In-memory reference backend: linear scan with exact distances.

Used by the test suite and for small local runs.  Results are fully
deterministic: equal distances keep insertion order.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import numpy as np

from doc_rag.errors import InvalidInput
from doc_rag.retrieval.base import VectorStoreBase, check_compatible
from doc_rag.retrieval.models import (
    CollectionHandle,
    DistanceMetric,
    EmbeddingVector,
    IndexEntry,
    RetrievedMatch,
)

logger = logging.getLogger(__name__)


@dataclass
class _Collection:
    handle: CollectionHandle
    # dicts keep insertion order; an upsert keeps the original position
    entries: dict[str, IndexEntry] = field(default_factory=dict)


def _distances(metric: DistanceMetric, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    if metric is DistanceMetric.L2:
        diff = matrix - query
        return np.einsum("ij,ij->i", diff, diff)
    if metric is DistanceMetric.IP:
        return 1.0 - matrix @ query
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    # zero vectors have no direction; treat them as orthogonal to everything
    cosine = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
    return 1.0 - cosine


class InMemoryVectorStore(VectorStoreBase):
    """Thread-safe dict-of-collections vector store."""

    def __init__(self, metric: DistanceMetric | str = DistanceMetric.COSINE) -> None:
        super().__init__(metric)
        self._lock = threading.RLock()
        self._collections: dict[str, _Collection] = {}

    def _ensure_collection(self, requested: CollectionHandle) -> CollectionHandle:
        with self._lock:
            existing = self._collections.get(requested.name)
            if existing is None:
                self._collections[requested.name] = _Collection(handle=requested)
                logger.info(
                    "Created in-memory collection %r (dim=%d, metric=%s)",
                    requested.name,
                    requested.dimension,
                    requested.metric.value,
                )
                return requested
            check_compatible(existing.handle, requested)
            return existing.handle

    def _collection(self, handle: CollectionHandle) -> _Collection:
        collection = self._collections.get(handle.name)
        if collection is None:
            raise InvalidInput(f"Unknown collection {handle.name!r}; call ensure_collection first")
        check_compatible(collection.handle, handle)
        return collection

    def _insert(self, handle: CollectionHandle, entries: list[IndexEntry]) -> None:
        with self._lock:
            collection = self._collection(handle)
            for entry in entries:
                collection.entries[entry.id] = entry

    def _search(
        self,
        handle: CollectionHandle,
        query: EmbeddingVector,
        top_k: int,
    ) -> list[RetrievedMatch]:
        with self._lock:
            entries = list(self._collection(handle).entries.values())
        if not entries:
            return []

        matrix = np.array([e.embedding.values for e in entries], dtype=np.float64)
        distances = _distances(handle.metric, matrix, np.array(query.values, dtype=np.float64))
        order = np.argsort(distances, kind="stable")[:top_k]
        return [
            RetrievedMatch(
                chunk_text=entries[i].chunk_text,
                score=handle.metric.to_score(float(distances[i])),
                distance=float(distances[i]),
                source_id=entries[i].source_id,
                ordinal=entries[i].ordinal,
                entry_id=entries[i].id,
            )
            for i in order
        ]

    def count(self, handle: CollectionHandle) -> int:
        with self._lock:
            return len(self._collection(handle).entries)

    def health_check(self) -> bool:
        return True

    def delete(self, handle: CollectionHandle, ids: list[str]) -> None:
        with self._lock:
            collection = self._collection(handle)
            for entry_id in ids:
                collection.entries.pop(entry_id, None)

