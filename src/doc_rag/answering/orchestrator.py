"""Query orchestrator — question → ranked chunks → optional generated answer.

Contract
--------
* Blank questions and non-positive ``top_k`` raise :class:`InvalidInput`
  before any external call.
* Embedding failures are fatal and propagate.
* An empty search is a successful :class:`QueryResult` with no matches;
  generation is skipped.
* Generation is best-effort.  Any failure leaves ``answer`` as ``None``
  and records ``generation_error``; the ranked matches are still returned.
"""

from __future__ import annotations

import logging

from doc_rag.answering.llm import TextGenerator
from doc_rag.answering.prompts import build_answer_prompt, build_context
from doc_rag.errors import InvalidInput
from doc_rag.ingestion.embedder import EmbeddingClient
from doc_rag.retrieval.base import VectorStoreBase
from doc_rag.retrieval.models import CollectionHandle, QueryResult, RetrievedMatch

logger = logging.getLogger(__name__)


class QueryOrchestrator:
    """Answer questions against one collection.

    Parameters
    ----------
    embedder:
        Client used to embed the question.
    store:
        The vector store holding *collection*.
    collection:
        Handle returned by ``store.ensure_collection``.
    generator:
        Optional text generator; ``None`` means retrieval-only.
    default_top_k:
        Used when :meth:`answer` is called without ``top_k``.
    max_tokens / temperature:
        Forwarded to the generator.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        collection: CollectionHandle,
        generator: TextGenerator | None = None,
        *,
        default_top_k: int = 5,
        max_tokens: int = 512,
        temperature: float = 0.1,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.collection = collection
        self.generator = generator
        self.default_top_k = default_top_k
        self.max_tokens = max_tokens
        self.temperature = temperature

    def answer(self, question: str, top_k: int | None = None) -> QueryResult:
        """Retrieve the *top_k* most relevant chunks and try to answer from them."""
        if not question or not question.strip():
            raise InvalidInput("Question is required")
        k = self.default_top_k if top_k is None else top_k
        if k < 1:
            raise InvalidInput(f"top_k must be a positive integer, got {k}")

        query_vector = self.embedder.embed(question)
        matches = self.store.search(self.collection, query_vector, k)
        if not matches:
            logger.info("No matching chunks for %r", question)
            return QueryResult(question=question)

        answer, error = self._generate(question, matches)
        return QueryResult(question=question, matches=matches, answer=answer, generation_error=error)

    def _generate(self, question: str, matches: list[RetrievedMatch]) -> tuple[str | None, str | None]:
        if self.generator is None:
            return None, None

        messages = build_answer_prompt(question, build_context(matches))
        try:
            text = self.generator.complete(messages, max_tokens=self.max_tokens, temperature=self.temperature)
        except Exception as exc:
            logger.warning("LLM generation failed, returning retrieved chunks only: %s", exc, exc_info=True)
            return None, f"{type(exc).__name__}: {exc}"

        if not text or not text.strip():
            logger.warning("LLM returned an empty answer for %r", question)
            return None, "empty completion"
        return text.strip(), None
