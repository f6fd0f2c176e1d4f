"""Document QA service — the operations an HTTP layer calls.

Ties the collaborators (text extraction, document store) to the core
pipeline and orchestrator.  Request parsing, uploads and routing stay
outside this package; a route handler only needs, e.g.::

    service = DocumentQAService(build_context())
    upload = service.upload_pdf(request_body)
    result = service.ask("What does section 2 require?", top_k=5)
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel

from doc_rag.context import RAGContext
from doc_rag.documents import DocumentStore, InMemoryDocumentStore
from doc_rag.errors import InvalidInput
from doc_rag.ingestion.loader import extract_pdf_text
from doc_rag.retrieval.models import IngestResult, QueryResult

logger = logging.getLogger(__name__)


class UploadResult(BaseModel):
    """Outcome of storing and indexing one document."""

    document_id: str
    total_chunks: int
    inserted_count: int
    skipped_count: int = 0


class DocumentQAService:
    """Facade over one :class:`RAGContext`.

    Parameters
    ----------
    context:
        Wired clients and the target collection.
    documents:
        Store for original texts; in-memory by default.
    extractor:
        ``bytes -> str`` text extraction; PDF by default.
    """

    def __init__(
        self,
        context: RAGContext,
        documents: DocumentStore | None = None,
        extractor: Callable[[bytes], str] = extract_pdf_text,
    ) -> None:
        self.context = context
        self.documents = documents if documents is not None else InMemoryDocumentStore()
        self._extract = extractor
        self._pipeline = context.indexing_pipeline()
        self._orchestrator = context.query_orchestrator()

    def upload_pdf(self, data: bytes) -> UploadResult:
        """Extract, store and index a binary document."""
        return self.add_text(self._extract(data))

    def add_text(self, text: str) -> UploadResult:
        """Store *text* as a new document and index it."""
        if not text or not text.strip():
            raise InvalidInput("No valid text found in document")
        doc = self.documents.create(text)
        logger.info("Stored document %s (%d chars)", doc.id, len(text))
        return self._to_upload(self._pipeline.ingest_document(doc.id, doc.text))

    def reindex(self, document_id: str) -> UploadResult:
        """Re-run ingestion for a stored document (entries are upserted)."""
        doc = self.documents.get(document_id)
        return self._to_upload(self._pipeline.ingest_document(doc.id, doc.text))

    def ask(self, question: str, top_k: int | None = None) -> QueryResult:
        return self._orchestrator.answer(question, top_k)

    @staticmethod
    def _to_upload(result: IngestResult) -> UploadResult:
        return UploadResult(
            document_id=result.document_id,
            total_chunks=result.chunk_count,
            inserted_count=result.inserted_count,
            skipped_count=len(result.skipped),
        )
