"""Original-document storage collaborator.

The core only needs ``create(text)`` and ``get(id)``.  Any durable store
(a SQL table, a document DB …) can stand in for the in-memory one here.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from doc_rag.errors import DocumentNotFound


class StoredDocument(BaseModel):
    """An original document as kept by the document store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class DocumentStore(Protocol):
    def create(self, text: str) -> StoredDocument: ...

    def get(self, document_id: str) -> StoredDocument: ...


class InMemoryDocumentStore:
    """Thread-safe dict-backed :class:`DocumentStore`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._docs: dict[str, StoredDocument] = {}

    def create(self, text: str) -> StoredDocument:
        doc = StoredDocument(text=text)
        with self._lock:
            self._docs[doc.id] = doc
        return doc

    def get(self, document_id: str) -> StoredDocument:
        with self._lock:
            doc = self._docs.get(document_id)
        if doc is None:
            raise DocumentNotFound(document_id)
        return doc

    def __len__(self) -> int:
        return len(self._docs)
