"""Domain models for chunks, index entries and query results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from doc_rag.errors import NoMatches


class DistanceMetric(str, Enum):
    """Distance function recorded on a collection.

    * ``cosine`` – ``1 - cos(a, b)``
    * ``l2`` – squared Euclidean distance (same ranking as Euclidean)
    * ``ip`` – ``1 - dot(a, b)``
    """

    COSINE = "cosine"
    L2 = "l2"
    IP = "ip"

    def to_score(self, distance: float) -> float:
        """Convert a distance (lower is better) to a similarity (higher is better)."""
        if self is DistanceMetric.L2:
            return 1.0 / (1.0 + distance)
        return 1.0 - distance


class Chunk(BaseModel):
    """A bounded, trimmed slice of a document's text."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    ordinal: int = Field(ge=0)


class EmbeddingVector(BaseModel):
    """A validated, fixed-length embedding."""

    model_config = ConfigDict(frozen=True)

    values: tuple[float, ...]

    @property
    def dimension(self) -> int:
        return len(self.values)


class CollectionHandle(BaseModel):
    """Opaque reference to an opened collection.

    Handles are plain values: two calls to ``ensure_collection`` for the same
    collection return equal handles.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    dimension: int = Field(gt=0)
    metric: DistanceMetric = DistanceMetric.COSINE


class IndexEntry(BaseModel):
    """One stored chunk: its embedding plus the link back to its document."""

    model_config = ConfigDict(frozen=True)

    id: str
    embedding: EmbeddingVector
    chunk_text: str
    source_id: str
    ordinal: int = Field(ge=0)

    @classmethod
    def for_chunk(cls, source_id: str, chunk: Chunk, embedding: EmbeddingVector) -> IndexEntry:
        return cls(
            id=f"{source_id}_{chunk.ordinal}",
            embedding=embedding,
            chunk_text=chunk.text,
            source_id=source_id,
            ordinal=chunk.ordinal,
        )


class RetrievedMatch(BaseModel):
    """A single search hit.

    Attributes
    ----------
    score:
        Similarity derived from ``distance`` (higher = more relevant).
    distance:
        Raw distance under the collection's metric (lower = more relevant).
    """

    chunk_text: str
    score: float
    distance: float
    source_id: str
    ordinal: int | None = None
    entry_id: str | None = None


class QueryResult(BaseModel):
    """Answer to one question: ranked matches plus an optional generated answer.

    ``answer`` is ``None`` when there were no matches, no generator was
    configured, or generation failed (``generation_error`` then says why).
    """

    question: str
    matches: list[RetrievedMatch] = Field(default_factory=list)
    answer: str | None = None
    generation_error: str | None = None

    @property
    def found(self) -> bool:
        return bool(self.matches)

    @property
    def no_matches(self) -> bool:
        return not self.matches

    def require_matches(self) -> QueryResult:
        """Return ``self`` or raise :class:`NoMatches` when nothing was retrieved."""
        if not self.matches:
            raise NoMatches(self.question)
        return self


class SkippedChunk(BaseModel):
    """A chunk the ingestion pipeline declined to embed."""

    ordinal: int
    reason: str
    length: int


class IngestResult(BaseModel):
    """Outcome of ingesting one document."""

    document_id: str
    chunk_count: int = 0
    inserted_count: int = 0
    skipped: list[SkippedChunk] = Field(default_factory=list)
