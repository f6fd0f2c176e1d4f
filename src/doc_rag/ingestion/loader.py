"""Text extraction — thin wrappers around LangChain document parsers."""

from __future__ import annotations

import logging

from langchain_community.document_loaders.parsers.pdf import PyPDFParser
from langchain_core.documents.base import Blob

from doc_rag.errors import InvalidInput

logger = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """Extract plain text from an in-memory PDF.

    Parameters
    ----------
    data:
        Raw PDF bytes (e.g. an uploaded file body).

    Returns
    -------
    str
        Page texts joined by newlines.

    Raises
    ------
    InvalidInput
        The bytes are empty, not a readable PDF, or contain no text.
    """
    if not data:
        raise InvalidInput("No binary data provided")

    blob = Blob.from_data(data, mime_type="application/pdf")
    try:
        pages = [doc.page_content for doc in PyPDFParser().lazy_parse(blob)]
    except Exception as exc:
        logger.warning("PDF parsing failed: %s", exc)
        raise InvalidInput(f"Could not read PDF: {exc}") from exc

    text = "\n".join(pages)
    if not text.strip():
        raise InvalidInput("No text could be extracted from the PDF")
    logger.info("Extracted %d chars from %d page(s)", len(text), len(pages))
    return text
