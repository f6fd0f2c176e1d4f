"""Shared pytest configuration, fakes and fixtures."""

from __future__ import annotations

import re
import zlib
from typing import Any

import pytest

from doc_rag.ingestion.embedder import EmbeddingClient
from doc_rag.retrieval.memory_store import InMemoryVectorStore
from doc_rag.retrieval.models import CollectionHandle

DIM = 32


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class KeywordProvider:
    """Deterministic bag-of-words embedding (crc32-hashed buckets)."""

    name = "keyword-fake"

    def __init__(self, dimension: int = DIM) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vec = [0.0] * self.dimension
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vec[zlib.crc32(word.encode()) % self.dimension] += 1.0
        return vec


class RecordingSleep:
    """Stand-in for ``time.sleep`` that only records the requested waits."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


class FakeGenerator:
    """Text generator returning a canned answer, or raising *error*."""

    def __init__(self, answer: str = "The fox jumped.", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def complete(self, messages: list[Any], *, max_tokens: int, temperature: float) -> str:
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return self.answer


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def provider() -> KeywordProvider:
    return KeywordProvider()


@pytest.fixture()
def embedder(provider: KeywordProvider, sleeps: RecordingSleep) -> EmbeddingClient:
    return EmbeddingClient(provider, DIM, base_delay=0.0, sleep=sleeps)


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def collection(store: InMemoryVectorStore) -> CollectionHandle:
    return store.ensure_collection("rag", DIM)
