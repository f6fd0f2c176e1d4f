"""
Retrieval — vector index abstraction and its backends.

This module wraps the vector store behind a clean interface so that the
ingestion and answering layers never need to know which DB is backing
retrieval.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`InMemoryVectorStore` — exact linear-scan reference backend.
- :class:`ChromaVectorStore` — Chroma backend.
- :class:`CollectionHandle`, :class:`IndexEntry`, :class:`RetrievedMatch`,
  :class:`QueryResult` … — data models.
"""

from doc_rag.retrieval.base import VectorStoreBase
from doc_rag.retrieval.memory_store import InMemoryVectorStore
from doc_rag.retrieval.models import (
    Chunk,
    CollectionHandle,
    DistanceMetric,
    EmbeddingVector,
    IndexEntry,
    IngestResult,
    QueryResult,
    RetrievedMatch,
    SkippedChunk,
)

__all__ = [
    "ChromaVectorStore",
    "Chunk",
    "CollectionHandle",
    "DistanceMetric",
    "EmbeddingVector",
    "InMemoryVectorStore",
    "IndexEntry",
    "IngestResult",
    "QueryResult",
    "RetrievedMatch",
    "SkippedChunk",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from doc_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
