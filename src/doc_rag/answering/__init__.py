"""
Answering — turns a question into ranked context and an optional answer.

Public API
----------
- :class:`QueryOrchestrator` — embed, search, build context, generate.
- :class:`TextGenerator` / :class:`ChatModelGenerator` — generation seam.
- :func:`get_generator` — build the configured generator (or ``None``).
"""

from doc_rag.answering.llm import ChatModelGenerator, TextGenerator, get_generator, get_llm
from doc_rag.answering.orchestrator import QueryOrchestrator

__all__ = [
    "ChatModelGenerator",
    "QueryOrchestrator",
    "TextGenerator",
    "get_generator",
    "get_llm",
]
