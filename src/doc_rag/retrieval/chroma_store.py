"""Chroma implementation of the vector-store abstraction.

The collection's dimension and distance metric are recorded in its
metadata (``"dimension"`` and Chroma's own ``"hnsw:space"``) so that
re-opening it from another process can detect configuration conflicts.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import chromadb

from doc_rag.config import settings
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

# Chroma's default space when a collection carries no "hnsw:space".
_CHROMA_DEFAULT_SPACE = "l2"


def _collection_names(client: Any) -> set[str]:
    # Older chromadb returns Collection objects, newer ones return names.
    return {c if isinstance(c, str) else c.name for c in client.list_collections()}


def _recorded_handle(name: str, collection: Any, requested: CollectionHandle) -> CollectionHandle:
    """Reconstruct the handle an existing Chroma collection was created with."""
    meta = collection.metadata or {}
    metric = DistanceMetric(meta.get("hnsw:space", _CHROMA_DEFAULT_SPACE))
    dimension = meta.get("dimension")
    if dimension is None:
        # Collection created outside doc_rag: infer from stored data if any.
        sample = collection.get(limit=1, include=["embeddings"])
        embeddings = sample.get("embeddings")
        if embeddings is not None and len(embeddings) > 0:
            dimension = len(embeddings[0])
        else:
            dimension = requested.dimension
    return CollectionHandle(name=name, dimension=int(dimension), metric=metric)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    client:
        A ready chromadb client.  When *None*, an on-disk client is created
        for *path* if given, else an HTTP client for *host* / *port*.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    path:
        Directory for a persistent local client.
    metric:
        Default metric for new collections (``cosine`` | ``l2`` | ``ip``).
    upsert_batch_size:
        Max records per upsert call.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        path: str = settings.chroma_path,
        metric: DistanceMetric | str = settings.distance_metric,
        upsert_batch_size: int = 5000,
    ) -> None:
        super().__init__(metric)
        if client is None:
            client = chromadb.PersistentClient(path=path) if path else chromadb.HttpClient(host=host, port=port)
        self._client = client
        self._upsert_batch_size = upsert_batch_size
        self._lock = threading.Lock()
        self._handles: dict[str, CollectionHandle] = {}
        self._collections: dict[str, Any] = {}

    # -- VectorStoreBase overrides --------------------------------------------

    def _ensure_collection(self, requested: CollectionHandle) -> CollectionHandle:
        with self._lock:
            recorded = self._handles.get(requested.name)
            if recorded is None:
                if requested.name in _collection_names(self._client):
                    collection = self._client.get_collection(name=requested.name, embedding_function=None)
                    recorded = _recorded_handle(requested.name, collection, requested)
                    logger.info("Opened Chroma collection %r", requested.name)
                else:
                    collection = self._client.get_or_create_collection(
                        name=requested.name,
                        metadata={"hnsw:space": requested.metric.value, "dimension": requested.dimension},
                        embedding_function=None,
                    )
                    recorded = requested
                    logger.info(
                        "Created Chroma collection %r (dim=%d, metric=%s)",
                        requested.name,
                        requested.dimension,
                        requested.metric.value,
                    )
                self._handles[requested.name] = recorded
                self._collections[requested.name] = collection
            check_compatible(recorded, requested)
            return recorded

    def _collection(self, handle: CollectionHandle) -> Any:
        with self._lock:
            recorded = self._handles.get(handle.name)
            if recorded is None:
                raise InvalidInput(f"Unknown collection {handle.name!r}; call ensure_collection first")
            check_compatible(recorded, handle)
            return self._collections[handle.name]

    def _insert(self, handle: CollectionHandle, entries: list[IndexEntry]) -> None:
        collection = self._collection(handle)
        for start in range(0, len(entries), self._upsert_batch_size):
            batch = entries[start : start + self._upsert_batch_size]
            collection.upsert(
                ids=[e.id for e in batch],
                embeddings=[list(e.embedding.values) for e in batch],
                documents=[e.chunk_text for e in batch],
                metadatas=[{"source_id": e.source_id, "ordinal": e.ordinal} for e in batch],
            )
            logger.debug("Upserted %d entries into %r", len(batch), handle.name)

    def _search(
        self,
        handle: CollectionHandle,
        query: EmbeddingVector,
        top_k: int,
    ) -> list[RetrievedMatch]:
        collection = self._collection(handle)
        n_results = min(top_k, collection.count())
        if n_results == 0:
            return []

        results = collection.query(
            query_embeddings=[list(query.values)],
            n_results=n_results,
            include=["documents", "metadatas", "distances"],
        )

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        matches: list[RetrievedMatch] = []
        for entry_id, content, meta, dist in zip(ids, docs, metas, distances):
            meta = meta or {}
            matches.append(
                RetrievedMatch(
                    chunk_text=content or "",
                    score=handle.metric.to_score(float(dist)),
                    distance=float(dist),
                    source_id=str(meta.get("source_id", "")),
                    ordinal=meta.get("ordinal"),
                    entry_id=entry_id,
                )
            )
        matches.sort(key=lambda m: m.distance)
        return matches

    def count(self, handle: CollectionHandle) -> int:
        return self._collection(handle).count()

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, handle: CollectionHandle, ids: list[str]) -> None:
        self._collection(handle).delete(ids=ids)

