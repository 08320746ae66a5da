"""Plain-text extraction from uploaded quiz documents (.pdf, .docx, .txt)."""

import io
import logging

import docx
import pdfplumber

from quiz_builder.config import settings
from quiz_builder.core.errors import GenerationFailed, ValidationFailed

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


def extract_text(file_bytes: bytes, filename: str) -> str:
    """Dispatch to the appropriate extractor based on file extension."""
    name = (filename or "").lower()
    if name.endswith(".pdf"):
        text = _pdf_text(file_bytes)
    elif name.endswith(".docx"):
        text = _docx_text(file_bytes)
    elif name.endswith(".txt"):
        text = file_bytes.decode("utf-8", errors="replace")
    else:
        raise ValidationFailed(
            f"Unsupported file type. Use one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    text = text.strip()
    if not text:
        raise GenerationFailed("No text could be extracted from the uploaded file")
    logger.debug("Extracted %d characters from %s", len(text), filename)
    return text


def _pdf_text(b: bytes) -> str:
    pages = []
    try:
        with pdfplumber.open(io.BytesIO(b)) as pdf:
            for page in pdf.pages:
                pages.append(page.extract_text() or "")
    except Exception as e:
        logger.warning("PDF text extraction failed: %s", e)
        raise GenerationFailed(
            "Could not read the PDF file",
            raw=str(e) if settings.EXPOSE_LLM_RAW_OUTPUT else None,
        ) from e
    return "\n".join(pages)


def _docx_text(b: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(b))
    except Exception as e:
        logger.warning("DOCX text extraction failed: %s", e)
        raise GenerationFailed(
            "Could not read the DOCX file",
            raw=str(e) if settings.EXPOSE_LLM_RAW_OUTPUT else None,
        ) from e
    return "\n".join(p.text for p in document.paragraphs)
