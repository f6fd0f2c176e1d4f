"""LLM initialisation — single place to swap generation providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **Any OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` (Groq,
   a vLLM server, …).  Those expose ``/v1/chat/completions``, so
   ``ChatOpenAI`` works unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from langchain_openai import ChatOpenAI

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel
    from langchain_core.messages import BaseMessage

    from doc_rag.config import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class TextGenerator(Protocol):
    """Capability interface for the text-completion collaborator."""

    def complete(self, messages: list[BaseMessage], *, max_tokens: int, temperature: float) -> str:
        """Return the completion text or raise on failure."""
        ...


class ChatModelGenerator:
    """Adapter turning a LangChain chat model into a :class:`TextGenerator`."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    def complete(self, messages: list[BaseMessage], *, max_tokens: int, temperature: float) -> str:
        response = self._llm.invoke(messages, max_tokens=max_tokens, temperature=temperature)
        content = response.content
        if isinstance(content, list):
            # multi-part content: keep the text parts
            content = "".join(p if isinstance(p, str) else p.get("text", "") for p in content)
        return content


def get_llm(settings: Settings, temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    OpenAI-compatible endpoint instead of the OpenAI cloud API.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
        "max_tokens": settings.llm_max_tokens,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # self-hosted servers (vLLM …) accept any key
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


def get_generator(settings: Settings) -> TextGenerator | None:
    """Build the generator, or ``None`` (retrieval-only) when neither a key
    nor an OpenAI-compatible endpoint is configured."""
    if not settings.openai_api_key and not settings.llm_base_url:
        logger.warning("No LLM API key or endpoint configured; answers will be retrieval-only")
        return None
    return ChatModelGenerator(get_llm(settings))
