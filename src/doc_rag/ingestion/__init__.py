"""
Ingestion — text extraction, chunking, and embedding into the vector store.

This module is responsible for the ETL-like pipeline that converts raw
document text into embedded chunks stored in a vector database.
"""

from doc_rag.ingestion.chunker import chunk_text
from doc_rag.ingestion.embedder import (
    EmbeddingClient,
    EmbeddingProvider,
    InferenceClientProvider,
    LangChainEmbeddingProvider,
    get_embedding_provider,
)
from doc_rag.ingestion.pipeline import IndexingPipeline

__all__ = [
    "EmbeddingClient",
    "EmbeddingProvider",
    "IndexingPipeline",
    "InferenceClientProvider",
    "LangChainEmbeddingProvider",
    "chunk_text",
    "get_embedding_provider",
]
