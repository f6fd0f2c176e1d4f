"""Embedding acquisition with retry, backoff and shape validation.

:class:`EmbeddingClient` is the only thing the pipeline and the
orchestrator talk to.  The numeric work is delegated to an
:class:`EmbeddingProvider` — any object with a ``name`` and an
``embed(text)`` method returning a raw numeric sequence — so providers can
be swapped without touching the retry / validation logic here.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence
from numbers import Real
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from doc_rag.errors import EmbeddingDimensionMismatch, InvalidInput, ProviderUnavailable
from doc_rag.retrieval.models import EmbeddingVector

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from doc_rag.config import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Capability interface for embedding backends."""

    name: str

    def embed(self, text: str) -> Any:
        """Return the raw embedding for *text* (list, tuple, numpy array …)."""
        ...


# ---------------------------------------------------------------------------
# Provider adapters
# ---------------------------------------------------------------------------


class LangChainEmbeddingProvider:
    """Adapter for any LangChain :class:`~langchain_core.embeddings.Embeddings`."""

    def __init__(self, embeddings: Embeddings, name: str | None = None) -> None:
        self._embeddings = embeddings
        self.name = name or type(embeddings).__name__

    def embed(self, text: str) -> list[float]:
        return self._embeddings.embed_query(text)


class InferenceClientProvider:
    """HuggingFace Inference API ``feature_extraction``.

    The API may return a nested ``[[...]]`` array for a single input;
    :class:`EmbeddingClient` flattens that.
    """

    def __init__(self, model: str, token: str | None = None, client: Any | None = None) -> None:
        if client is None:
            from huggingface_hub import InferenceClient

            client = InferenceClient(token=token or None)
        self._client = client
        self.model = model
        self.name = f"hf-inference:{model}"

    def embed(self, text: str) -> Any:
        return self._client.feature_extraction(text, model=self.model)


def get_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Build the provider named by ``settings.embedding_provider``."""
    kind = settings.embedding_provider
    if kind == "hf-inference":
        return InferenceClientProvider(settings.embedding_model, token=settings.hf_api_key)
    if kind == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return LangChainEmbeddingProvider(
            HuggingFaceEmbeddings(model_name=settings.embedding_model),
            name=f"huggingface:{settings.embedding_model}",
        )
    if kind == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict[str, Any] = {"model": settings.embedding_model, "api_key": settings.openai_api_key}
        # only the text-embedding-3 family accepts a requested size
        if settings.embedding_model.startswith("text-embedding-3"):
            kwargs["dimensions"] = settings.embedding_dim
        return LangChainEmbeddingProvider(OpenAIEmbeddings(**kwargs), name=f"openai:{settings.embedding_model}")
    raise InvalidInput(f"Unsupported embedding provider: {kind!r}")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def normalize_vector(raw: Any, dimension: int) -> EmbeddingVector:
    """Validate a provider result, un-nesting one level if needed.

    Raises
    ------
    EmbeddingDimensionMismatch
        The result is not a flat list of *dimension* finite reals.
    """
    if hasattr(raw, "tolist"):
        raw = raw.tolist()
    if not _is_sequence(raw):
        raise EmbeddingDimensionMismatch(dimension, None, f"not a sequence: {type(raw).__name__}")

    values = list(raw)
    if values and _is_sequence(values[0]):
        values = list(values[0])

    for value in values:
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            raise EmbeddingDimensionMismatch(dimension, len(values), f"non-numeric value {value!r}")
    if len(values) != dimension:
        raise EmbeddingDimensionMismatch(dimension, len(values))
    return EmbeddingVector(values=tuple(float(v) for v in values))


class EmbeddingClient:
    """Turns text into validated fixed-dimension vectors.

    Parameters
    ----------
    provider:
        The embedding backend.
    dimension:
        Expected vector length; must equal the collection's dimension.
    max_attempts:
        Total provider calls per text before giving up.
    base_delay:
        Linear backoff step: after failed attempt *n* wait ``n * base_delay``.
    sleep:
        Injected for tests; defaults to :func:`time.sleep`.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        dimension: int,
        *,
        max_attempts: int = 5,
        base_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if dimension < 1:
            raise InvalidInput(f"dimension must be positive, got {dimension}")
        if max_attempts < 1:
            raise InvalidInput(f"max_attempts must be positive, got {max_attempts}")
        self.provider = provider
        self.dimension = dimension
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    def embed(self, text: str) -> EmbeddingVector:
        """Embed one text, retrying transient provider failures."""
        raw = self._call_with_retry(text)
        # shape problems are not transient: no retry
        return normalize_vector(raw, self.dimension)

    def embed_batch(self, texts: Sequence[str], *, delay: float = 0.2) -> list[EmbeddingVector]:
        """Embed *texts* one at a time, pausing *delay* seconds between calls.

        The first fatal error aborts the batch and propagates.
        """
        vectors: list[EmbeddingVector] = []
        for i, text in enumerate(texts):
            if i and delay > 0:
                self._sleep(delay)
            vectors.append(self.embed(text))
            logger.debug("  embedded %d / %d", len(vectors), len(texts))
        return vectors

    def _call_with_retry(self, text: str) -> Any:
        last_exc: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.provider.embed(text)
            except Exception as exc:
                last_exc = exc
                if attempt < self.max_attempts:
                    wait = attempt * self.base_delay
                    logger.warning(
                        "Embed attempt %d/%d via %s failed (wait %.2fs): %s",
                        attempt,
                        self.max_attempts,
                        self.provider_name,
                        wait,
                        exc,
                    )
                    self._sleep(wait)
        logger.error("Embedding via %s failed after %d attempts", self.provider_name, self.max_attempts)
        raise ProviderUnavailable(self.provider_name, self.max_attempts, str(last_exc)) from last_exc
