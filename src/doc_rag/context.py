"""Dependency container for live clients.

Nothing in :mod:`doc_rag` opens connections at import time.  A
:class:`RAGContext` is built once at startup (``build_context``) or by hand
in tests, and handed to the pipeline and the orchestrator.

Usage::

    from doc_rag.context import build_context

    ctx = build_context()
    ctx.indexing_pipeline().ingest_document("doc-1", text)
    result = ctx.query_orchestrator().answer("What is the refund policy?")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from doc_rag.answering.llm import TextGenerator, get_generator
from doc_rag.answering.orchestrator import QueryOrchestrator
from doc_rag.config import Settings
from doc_rag.config import settings as default_settings
from doc_rag.errors import InvalidInput
from doc_rag.ingestion.embedder import EmbeddingClient, get_embedding_provider
from doc_rag.ingestion.pipeline import IndexingPipeline
from doc_rag.retrieval.base import VectorStoreBase
from doc_rag.retrieval.memory_store import InMemoryVectorStore
from doc_rag.retrieval.models import CollectionHandle

logger = logging.getLogger(__name__)


@dataclass
class RAGContext:
    """Everything the pipeline and orchestrator need, explicitly wired."""

    settings: Settings
    embedder: EmbeddingClient
    store: VectorStoreBase
    collection: CollectionHandle
    generator: TextGenerator | None = None

    def indexing_pipeline(self) -> IndexingPipeline:
        return IndexingPipeline(
            self.embedder,
            self.store,
            self.collection,
            max_len=self.settings.chunk_max_len,
            max_chunk_chars=self.settings.max_chunk_chars,
            embed_delay=self.settings.embed_delay,
        )

    def query_orchestrator(self) -> QueryOrchestrator:
        return QueryOrchestrator(
            self.embedder,
            self.store,
            self.collection,
            self.generator,
            default_top_k=self.settings.default_top_k,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
        )


def get_vector_store(settings: Settings) -> VectorStoreBase:
    """Build the backend named by ``settings.vector_backend``."""
    if settings.vector_backend == "memory":
        return InMemoryVectorStore(metric=settings.distance_metric)
    if settings.vector_backend == "chroma":
        from doc_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            host=settings.chroma_host,
            port=settings.chroma_port,
            path=settings.chroma_path,
            metric=settings.distance_metric,
        )
    raise InvalidInput(f"Unsupported vector backend: {settings.vector_backend!r}")


def build_context(
    settings: Settings | None = None,
    *,
    store: VectorStoreBase | None = None,
    embedder: EmbeddingClient | None = None,
    generator: TextGenerator | None = None,
) -> RAGContext:
    """Wire the configured adapters; any piece can be passed in pre-built."""
    settings = settings or default_settings
    store = store or get_vector_store(settings)
    embedder = embedder or EmbeddingClient(
        get_embedding_provider(settings),
        settings.embedding_dim,
        max_attempts=settings.embed_max_attempts,
        base_delay=settings.embed_base_delay,
    )
    collection = store.ensure_collection(settings.collection_name, settings.embedding_dim)
    if generator is None:
        generator = get_generator(settings)
    logger.info(
        "RAG context ready: backend=%s collection=%r dim=%d provider=%s",
        type(store).__name__,
        collection.name,
        collection.dimension,
        embedder.provider_name,
    )
    return RAGContext(
        settings=settings,
        embedder=embedder,
        store=store,
        collection=collection,
        generator=generator,
    )
