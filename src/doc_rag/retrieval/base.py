"""Abstract base class for vector-store backends.

Adding a new backend (Pinecone, LanceDB, Qdrant …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
``_``-prefixed hooks.  Validation of dimensions, ``top_k`` and collection
membership lives here, so every backend refuses malformed data the same
way and before anything is written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from doc_rag.errors import (
    DimensionConflict,
    EmbeddingDimensionMismatch,
    InvalidInput,
    MetricConflict,
)
from doc_rag.retrieval.models import (
    CollectionHandle,
    DistanceMetric,
    EmbeddingVector,
    IndexEntry,
    RetrievedMatch,
)


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    metric:
        Default distance metric for collections created without an explicit
        one.  The metric is recorded per collection and never mixed.
    """

    def __init__(self, metric: DistanceMetric | str = DistanceMetric.COSINE) -> None:
        self.metric = DistanceMetric(metric)

    # -- public API -----------------------------------------------------------

    def ensure_collection(
        self,
        name: str,
        dimension: int,
        metric: DistanceMetric | str | None = None,
    ) -> CollectionHandle:
        """Open *name* if it exists with the same configuration, else create it.

        Raises
        ------
        DimensionConflict
            The collection exists with a different dimension.
        MetricConflict
            The collection exists with a different distance metric.
        """
        if not name:
            raise InvalidInput("Collection name must not be empty")
        if dimension < 1:
            raise InvalidInput(f"Collection dimension must be positive, got {dimension}")
        requested = CollectionHandle(
            name=name,
            dimension=dimension,
            metric=DistanceMetric(metric) if metric is not None else self.metric,
        )
        return self._ensure_collection(requested)

    def insert(self, handle: CollectionHandle, entries: Sequence[IndexEntry]) -> int:
        """Validate every entry, then write them all.  Returns the number of distinct ids written."""
        for entry in entries:
            if entry.embedding.dimension != handle.dimension:
                raise EmbeddingDimensionMismatch(
                    handle.dimension,
                    entry.embedding.dimension,
                    f"entry {entry.id!r} rejected by collection {handle.name!r}",
                )
        if not entries:
            return 0
        # a repeated id keeps its first position and its last value
        unique = list({e.id: e for e in entries}.values())
        self._insert(handle, unique)
        return len(unique)

    def search(
        self,
        handle: CollectionHandle,
        query: EmbeddingVector,
        top_k: int = 5,
    ) -> list[RetrievedMatch]:
        """Return at most *top_k* matches, most relevant first.

        An empty collection yields ``[]``.
        """
        if top_k < 1:
            raise InvalidInput(f"top_k must be a positive integer, got {top_k}")
        if query.dimension != handle.dimension:
            raise EmbeddingDimensionMismatch(
                handle.dimension,
                query.dimension,
                f"query against collection {handle.name!r}",
            )
        return self._search(handle, query, top_k)

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def _ensure_collection(self, requested: CollectionHandle) -> CollectionHandle:
        """Open or create the collection described by *requested*.

        Must be atomic with respect to concurrent calls for the same name.
        """
        ...

    @abstractmethod
    def _insert(self, handle: CollectionHandle, entries: list[IndexEntry]) -> None:
        """Upsert pre-validated *entries* keyed by ``IndexEntry.id``."""
        ...

    @abstractmethod
    def _search(
        self,
        handle: CollectionHandle,
        query: EmbeddingVector,
        top_k: int,
    ) -> list[RetrievedMatch]:
        """Nearest-neighbour search under ``handle.metric``, ascending distance."""
        ...

    @abstractmethod
    def count(self, handle: CollectionHandle) -> int:
        """Number of entries stored in the collection."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, handle: CollectionHandle, ids: list[str]) -> None:
        """Delete entries by their IDs.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")


def check_compatible(recorded: CollectionHandle, requested: CollectionHandle) -> None:
    """Raise when *requested* disagrees with the collection's recorded configuration."""
    if recorded.dimension != requested.dimension:
        raise DimensionConflict(recorded.name, requested.dimension, recorded.dimension)
    if recorded.metric is not requested.metric:
        raise MetricConflict(recorded.name, requested.metric.value, recorded.metric.value)
