"""Exception taxonomy shared by the ingestion and answering layers.

Propagation policy
------------------
* :class:`InvalidInput` and the dimension errors are never retried.
* :class:`ProviderUnavailable` is raised only after the embedding retry
  budget is spent.
* Generation failures never surface as exceptions; the orchestrator turns
  them into a result without an answer.
* :class:`NoMatches` is opt-in: a search that finds nothing is a valid
  result, callers that want a "not found" error ask for it explicitly.
"""

from __future__ import annotations


class DocRAGError(Exception):
    """Base class for every error raised by :mod:`doc_rag`."""


class InvalidInput(DocRAGError, ValueError):
    """The caller supplied something unusable (blank question, bad config, …)."""


class ProviderUnavailable(DocRAGError):
    """An external provider kept failing after all retry attempts."""

    def __init__(self, provider: str, attempts: int, detail: str = "") -> None:
        self.provider = provider
        self.attempts = attempts
        message = f"Provider {provider!r} unavailable after {attempts} attempt(s)"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmbeddingDimensionMismatch(DocRAGError):
    """A vector does not have the configured dimension (or is not a flat vector)."""

    def __init__(self, expected: int, actual: int | None, detail: str = "") -> None:
        self.expected = expected
        self.actual = actual
        message = f"Embedding dimension mismatch: expected {expected}, got {actual}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class IndexConfigurationConflict(DocRAGError):
    """An existing collection was opened with an incompatible configuration."""


class DimensionConflict(IndexConfigurationConflict):
    """A collection exists with a different dimension than requested."""

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection {collection!r} has dimension {actual}, requested {expected}"
        )


class MetricConflict(IndexConfigurationConflict):
    """A collection exists with a different distance metric than requested."""

    def __init__(self, collection: str, expected: str, actual: str) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection {collection!r} uses metric {actual!r}, requested {expected!r}"
        )


class NoMatches(DocRAGError):
    """A search completed successfully but returned nothing."""

    def __init__(self, question: str) -> None:
        self.question = question
        super().__init__(f"No matching chunks found for {question!r}")


class DocumentNotFound(DocRAGError, KeyError):
    """The document store has no record for the given id."""

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(document_id)

    def __str__(self) -> str:  # noqa: D105
        return f"Document {self.document_id!r} not found"
