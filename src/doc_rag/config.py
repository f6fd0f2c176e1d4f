"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from doc_rag.errors import InvalidInput

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_provider: Literal["huggingface", "hf-inference", "openai"] = Field(
        default="hf-inference",
        description=(
            "'huggingface' runs sentence-transformers locally, 'hf-inference' "
            "calls the HuggingFace Inference API, 'openai' uses OpenAI embeddings."
        ),
    )
    embedding_model: str = "sentence-transformers/all-mpnet-base-v2"
    embedding_dim: int = Field(default=768, gt=0, description="Process-wide vector dimension")
    hf_api_key: str = Field(default="", description="HuggingFace Inference API token")
    embed_max_attempts: int = Field(default=5, ge=1)
    embed_base_delay: float = Field(default=0.5, ge=0, description="Linear backoff step (seconds)")
    embed_delay: float = Field(default=0.2, ge=0, description="Pause between ingestion embeds (seconds)")

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or key for a compatible endpoint)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible chat API. Leave empty to use OpenAI "
            "cloud, e.g. 'https://api.groq.com/openai/v1' for Groq."
        ),
    )
    llm_max_tokens: int = Field(default=512, gt=0)
    llm_temperature: float = Field(default=0.1, ge=0, le=2)

    # Vector store
    vector_backend: Literal["chroma", "memory"] = "chroma"
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_path: str = Field(default="", description="Use an on-disk Chroma client at this path instead of HTTP")
    collection_name: str = "rag"
    distance_metric: Literal["cosine", "l2", "ip"] = "cosine"

    # Chunking / retrieval
    chunk_max_len: int = Field(default=1000, gt=0)
    max_chunk_chars: int = Field(default=8000, gt=0)
    default_top_k: int = Field(default=5, gt=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def load_settings(**overrides: Any) -> Settings:
    """Build :class:`Settings`, reporting bad values as :class:`InvalidInput`."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise InvalidInput(f"Invalid configuration: {exc}") from exc


def configure_logging(level: str | int | None = None) -> None:
    """Install the root log handler used by scripts and services."""
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)


# Plain configuration values only; live clients are built by doc_rag.context.
settings = load_settings()
