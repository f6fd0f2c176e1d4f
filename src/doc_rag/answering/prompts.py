"""Prompt templates for grounded question answering.

Keeping prompts in one place makes them easy to audit, version, and A/B
test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from doc_rag.retrieval.models import RetrievedMatch

CONTEXT_DELIMITER = "\n\n---\n\n"

SYSTEM_PROMPT = """\
You are an assistant that answers user questions using only the provided context.
If not enough information is present, say you don't know and provide guidance.
"""


def build_context(matches: list[RetrievedMatch]) -> str:
    """Concatenate matched chunks in rank order, each labelled with its rank."""
    return CONTEXT_DELIMITER.join(f"Chunk {i}:\n{m.chunk_text}" for i, m in enumerate(matches, 1))


def build_answer_prompt(question: str, context: str) -> list[BaseMessage]:
    """Assemble the messages for one grounded answer.

    Parameters
    ----------
    question:
        The user question.
    context:
        Output of :func:`build_context`.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.invoke()``.
    """
    user_msg = (
        f"Context:\n{context}\n\n"
        f"Question: {question}\n\n"
        "Answer concisely, cite the chunk numbers if used."
    )
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=user_msg),
    ]
