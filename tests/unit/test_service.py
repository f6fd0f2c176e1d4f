"""Unit tests for context wiring, the document QA service and its collaborators."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from conftest import DIM, FakeGenerator
from langchain_core.messages import AIMessage, HumanMessage

from doc_rag.answering.llm import ChatModelGenerator, TextGenerator, get_generator
from doc_rag.config import load_settings
from doc_rag.context import RAGContext, build_context, get_vector_store
from doc_rag.documents import InMemoryDocumentStore
from doc_rag.errors import DocumentNotFound, InvalidInput
from doc_rag.ingestion.loader import extract_pdf_text
from doc_rag.retrieval.memory_store import InMemoryVectorStore
from doc_rag.retrieval.models import DistanceMetric
from doc_rag.service import DocumentQAService

FOX = "The quick brown fox. It jumped over the lazy dog."


@pytest.fixture()
def app_settings():
    return load_settings(
        vector_backend="memory",
        embedding_dim=DIM,
        chunk_max_len=30,
        embed_delay=0,
        openai_api_key="",
        llm_base_url="",
    )


@pytest.fixture()
def context(app_settings, embedder) -> RAGContext:
    return build_context(app_settings, embedder=embedder, generator=FakeGenerator())


@pytest.fixture()
def service(context) -> DocumentQAService:
    return DocumentQAService(context, extractor=lambda data: data.decode("utf-8"))


# ── Context ────────────────────────────────────────────────────────────


class TestContext:
    def test_build_context_opens_configured_collection(self, context, app_settings) -> None:
        assert isinstance(context.store, InMemoryVectorStore)
        assert context.collection.name == app_settings.collection_name
        assert context.collection.dimension == DIM

    def test_components_use_settings(self, context) -> None:
        pipeline = context.indexing_pipeline()
        assert pipeline.max_len == 30
        assert pipeline.embed_delay == 0
        orch = context.query_orchestrator()
        assert orch.default_top_k == 5
        assert orch.max_tokens == 512

    def test_no_api_key_means_retrieval_only(self, app_settings, embedder) -> None:
        ctx = build_context(app_settings, embedder=embedder)
        assert ctx.generator is None

    def test_memory_backend_honours_metric(self) -> None:
        store = get_vector_store(load_settings(vector_backend="memory", distance_metric="l2"))
        assert store.ensure_collection("c", 4).metric is DistanceMetric.L2


# ── Service ────────────────────────────────────────────────────────────


class TestDocumentQAService:
    def test_add_text_then_ask(self, service, context) -> None:
        upload = service.add_text(FOX)
        assert upload.total_chunks == 2
        assert upload.inserted_count == 2
        assert upload.skipped_count == 0
        assert len(service.documents) == 1

        result = service.ask("What did the fox do?")
        assert result.answer == "The fox jumped."
        assert {m.source_id for m in result.matches} == {upload.document_id}

    def test_stored_text_matches_input(self, service) -> None:
        upload = service.add_text(FOX)
        assert service.documents.get(upload.document_id).text == FOX

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_blank_text_rejected(self, service, text) -> None:
        with pytest.raises(InvalidInput):
            service.add_text(text)
        assert len(service.documents) == 0

    def test_upload_uses_extractor(self, service, context) -> None:
        upload = service.upload_pdf(FOX.encode())
        assert upload.inserted_count == 2
        assert context.store.count(context.collection) == 2

    def test_extractor_errors_propagate(self, context) -> None:
        def broken(data: bytes) -> str:
            raise InvalidInput("not a PDF")

        service = DocumentQAService(context, extractor=broken)
        with pytest.raises(InvalidInput):
            service.upload_pdf(b"junk")

    def test_reindex_is_idempotent(self, service, context) -> None:
        upload = service.add_text(FOX)
        again = service.reindex(upload.document_id)
        assert again.document_id == upload.document_id
        assert context.store.count(context.collection) == 2

    def test_reindex_unknown_document(self, service) -> None:
        with pytest.raises(DocumentNotFound):
            service.reindex("missing")

    def test_ask_before_any_upload(self, service) -> None:
        assert service.ask("Anything?").no_matches

    def test_shared_document_store(self, context) -> None:
        docs = InMemoryDocumentStore()
        DocumentQAService(context, documents=docs).add_text(FOX)
        assert len(docs) == 1


# ── Collaborators ──────────────────────────────────────────────────────


class TestDocumentStore:
    def test_create_and_get(self) -> None:
        docs = InMemoryDocumentStore()
        doc = docs.create("hello")
        assert docs.get(doc.id) == doc
        assert doc.created_at.tzinfo is not None

    def test_ids_are_unique(self) -> None:
        docs = InMemoryDocumentStore()
        assert docs.create("a").id != docs.create("a").id

    def test_missing_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            InMemoryDocumentStore().get("nope")


class TestPdfLoader:
    def test_empty_bytes(self) -> None:
        with pytest.raises(InvalidInput):
            extract_pdf_text(b"")

    def test_garbage_bytes(self) -> None:
        pytest.importorskip("pypdf")
        with pytest.raises(InvalidInput):
            extract_pdf_text(b"this is not a pdf")

    def test_pdf_without_text(self) -> None:
        pypdf = pytest.importorskip("pypdf")
        writer = pypdf.PdfWriter()
        writer.add_blank_page(width=72, height=72)
        buf = io.BytesIO()
        writer.write(buf)
        with pytest.raises(InvalidInput, match="No text"):
            extract_pdf_text(buf.getvalue())


class TestLLM:
    def test_chat_model_generator_forwards_limits(self) -> None:
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content="  An answer. ")
        gen = ChatModelGenerator(llm)
        messages = [HumanMessage(content="q")]
        assert gen.complete(messages, max_tokens=512, temperature=0.1) == "  An answer. "
        llm.invoke.assert_called_once_with(messages, max_tokens=512, temperature=0.1)
        assert isinstance(gen, TextGenerator)

    def test_multipart_content_is_joined(self) -> None:
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content=["Part one. ", {"type": "text", "text": "Part two."}])
        assert ChatModelGenerator(llm).complete([], max_tokens=10, temperature=0) == "Part one. Part two."

    def test_get_generator_without_key(self) -> None:
        assert get_generator(load_settings(openai_api_key="", llm_base_url="")) is None

    def test_get_generator_with_compatible_endpoint(self) -> None:
        settings = load_settings(openai_api_key="sk-test", llm_base_url="http://localhost:8080/v1")
        gen = get_generator(settings)
        assert isinstance(gen, ChatModelGenerator)
        assert gen._llm.openai_api_base == "http://localhost:8080/v1"

    def test_keyless_compatible_endpoint_gets_placeholder_key(self) -> None:
        settings = load_settings(openai_api_key="", llm_base_url="http://localhost:8000/v1")
        gen = get_generator(settings)
        assert isinstance(gen, ChatModelGenerator)
        assert gen._llm.openai_api_key.get_secret_value() == "EMPTY"
