"""Indexing pipeline: chunk → embed (sequential, throttled) → insert.

Failure policy
--------------
Ingestion is all-or-nothing per document.  Entries are only written after
every surviving chunk has been embedded, in one ``insert`` call; if the
embedding client gives up part-way through, the error propagates and the
vectors computed so far are discarded.  Re-running the ingest is safe
because entry ids are deterministic (``<document_id>_<ordinal>``).
"""

from __future__ import annotations

import logging
import time

from doc_rag.errors import EmbeddingDimensionMismatch, InvalidInput
from doc_rag.ingestion.chunker import chunk_text
from doc_rag.ingestion.embedder import EmbeddingClient
from doc_rag.retrieval.base import VectorStoreBase
from doc_rag.retrieval.models import (
    Chunk,
    CollectionHandle,
    IndexEntry,
    IngestResult,
    SkippedChunk,
)

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """Ingest one document at a time into a collection.

    Parameters
    ----------
    embedder:
        Client whose dimension matches ``collection.dimension``.
    store:
        The vector store holding *collection*.
    collection:
        Handle returned by ``store.ensure_collection``.
    max_len:
        Chunk size passed to :func:`chunk_text`.
    max_chunk_chars:
        Chunks longer than this are skipped rather than embedded.
    embed_delay:
        Seconds to pause between consecutive embedding calls.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        collection: CollectionHandle,
        *,
        max_len: int = 1000,
        max_chunk_chars: int = 8000,
        embed_delay: float = 0.2,
    ) -> None:
        if embedder.dimension != collection.dimension:
            raise EmbeddingDimensionMismatch(
                collection.dimension,
                embedder.dimension,
                f"embedder does not fit collection {collection.name!r}",
            )
        self.embedder = embedder
        self.store = store
        self.collection = collection
        self.max_len = max_len
        self.max_chunk_chars = max_chunk_chars
        self.embed_delay = embed_delay

    def ingest_document(self, document_id: str, text: str) -> IngestResult:
        """Chunk, embed and index *text* under *document_id*."""
        if not document_id:
            raise InvalidInput("document_id must not be empty")

        t0 = time.monotonic()
        chunks = chunk_text(text, self.max_len)
        result = IngestResult(document_id=document_id, chunk_count=len(chunks))
        if not chunks:
            logger.info("Document %s produced no chunks", document_id)
            return result

        survivors = self._filter(chunks, result)
        if not survivors:
            logger.warning("Document %s: all %d chunks skipped", document_id, len(chunks))
            return result

        logger.info("Embedding %d chunk(s) of document %s", len(survivors), document_id)
        vectors = self.embedder.embed_batch([c.text for c in survivors], delay=self.embed_delay)
        entries = [IndexEntry.for_chunk(document_id, chunk, vec) for chunk, vec in zip(survivors, vectors)]

        result.inserted_count = self.store.insert(self.collection, entries)
        logger.info(
            "Indexed %d / %d chunk(s) of document %s into %r in %.1fs",
            result.inserted_count,
            len(chunks),
            document_id,
            self.collection.name,
            time.monotonic() - t0,
        )
        return result

    def _filter(self, chunks: list[Chunk], result: IngestResult) -> list[Chunk]:
        kept: list[Chunk] = []
        for chunk in chunks:
            length = len(chunk.text)
            if not chunk.text.strip():
                reason = "empty"
            elif length > self.max_chunk_chars:
                reason = f"longer than {self.max_chunk_chars} chars"
            else:
                kept.append(chunk)
                continue
            logger.warning("Skipping chunk %d of %s (%s, %d chars)", chunk.ordinal, result.document_id, reason, length)
            result.skipped.append(SkippedChunk(ordinal=chunk.ordinal, reason=reason, length=length))
        return kept
