"""PDF text and document-info extraction using PyMuPDF."""

from pathlib import Path

import fitz  # PyMuPDF

from ..logger import logger
from .models import DocumentInfo, ExtractedDocument

PDF_MAGIC = b"%PDF-"

# Threshold for detecting garbage text (corrupted font encodings)
GARBAGE_CONTROL_CHAR_RATIO = 0.1  # >10% control chars = garbage


class ExtractionInputError(ValueError):
    """Raised when the input cannot be read as a PDF."""

    pass


def is_garbage_text(text: str) -> bool:
    """Detect binary garbage produced by corrupted font encodings.

    Args:
        text: The extracted text to check.

    Returns:
        True if more than 10% of the characters are control characters.
    """
    if not text or len(text) < 20:
        return False
    control_chars = sum(1 for c in text if ord(c) < 32 and c not in "\n\t\r ")
    return control_chars / len(text) > GARBAGE_CONTROL_CHAR_RATIO


def _pdf_version(format_str: str | None) -> str | None:
    # PyMuPDF reports e.g. "PDF 1.7"
    if not format_str:
        return None
    return format_str.removeprefix("PDF").strip() or None


def _document_info(metadata: dict | None) -> DocumentInfo:
    metadata = metadata or {}
    return DocumentInfo(
        title=metadata.get("title") or None,
        author=metadata.get("author") or None,
        creator=metadata.get("creator") or None,
        producer=metadata.get("producer") or None,
        creation_date=metadata.get("creationDate") or None,
        version=_pdf_version(metadata.get("format")),
    )


def _open(source: bytes | str | Path) -> tuple["fitz.Document", int]:
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"PDF file not found: {path}")
        data = path.read_bytes()
    else:
        data = source

    if not data.startswith(PDF_MAGIC):
        raise ExtractionInputError("Input does not have a valid PDF header")

    try:
        return fitz.open(stream=data, filetype="pdf"), len(data)
    except Exception as e:
        raise ExtractionInputError(f"Unable to open PDF: {e}") from e


def extract_pdf(source: bytes | str | Path) -> ExtractedDocument:
    """Extract raw text, page count and document info from a PDF.

    Page texts are joined with blank lines so paragraph boundaries survive.

    Args:
        source: PDF bytes or a path to a PDF file.

    Returns:
        ExtractedDocument for the conversion pipeline.

    Raises:
        FileNotFoundError: If a path is given and does not exist.
        ExtractionInputError: If the input is not a readable PDF.
    """
    doc, file_size = _open(source)
    try:
        page_texts = []
        for page in doc:
            # PostgreSQL cannot store NUL (0x00) in text fields
            text = page.get_text().replace("\x00", "")
            if text.strip():
                page_texts.append(text.strip())

        extracted = ExtractedDocument(
            raw_text="\n\n".join(page_texts),
            page_count=max(1, doc.page_count),
            info=_document_info(doc.metadata),
            file_size=file_size,
        )
        logger.info(
            "pdf text extracted",
            page_count=extracted.page_count,
            text_length=len(extracted.raw_text),
            file_size=file_size,
        )
        return extracted
    finally:
        doc.close()
