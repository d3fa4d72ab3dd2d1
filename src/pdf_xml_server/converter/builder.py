"""Build the hierarchical document model for a whole PDF."""

import os
import re
import time

from ..logger import logger
from .assembler import assemble_page
from .extractor import is_garbage_text
from .models import (
    ConversionStats,
    DocumentMetadata,
    DocumentModel,
    ExtractedDocument,
    HeadingNode,
    PageNode,
    StructureCounts,
)

# Heuristic confidence for the text-only classification pass
DEFAULT_STRUCTURE_ACCURACY = 0.92

# Reported when the extractor gave us nothing usable
EMPTY_DOCUMENT_ACCURACY = 0.0

_LINE_ENDINGS = re.compile(r"\r\n?")
_TRAILING_SPACE = re.compile(r"[ \t\f\v]+\n")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


class PipelineFault(RuntimeError):
    """Raised when the conversion pipeline fails unexpectedly."""

    pass


def normalize_text(text: str) -> str:
    """Normalize whitespace while keeping line structure.

    Line endings become ``\\n``, trailing whitespace on each line is dropped,
    runs of blank lines collapse to one and the result is stripped.
    """
    text = _LINE_ENDINGS.sub("\n", text)
    text = _TRAILING_SPACE.sub("\n", text)
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def split_into_pages(text: str, page_count: int) -> list[str]:
    """Slice text into ``page_count`` proportional, contiguous pieces.

    Page i receives characters ``[i*L//n, (i+1)*L//n)``.
    """
    if page_count <= 1:
        return [text]
    length = len(text)
    return [
        text[i * length // page_count : (i + 1) * length // page_count]
        for i in range(page_count)
    ]


def has_usable_text(text: str) -> bool:
    return bool(text.strip()) and not is_garbage_text(text)


def _resolve_accuracy(value: float | None) -> float:
    if value is None:
        value = float(os.getenv("STRUCTURE_ACCURACY", str(DEFAULT_STRUCTURE_ACCURACY)))
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"structure_accuracy must be within [0, 1], got {value}")
    return value


class DocumentBuilder:
    """Turns extractor output into a DocumentModel and its statistics.

    The builder holds configuration only, so one instance can serve
    concurrent conversions.
    """

    def __init__(self, structure_accuracy: float | None = None):
        """Initialize the builder.

        Args:
            structure_accuracy: Confidence reported for every conversion.
                Defaults to the STRUCTURE_ACCURACY env var, then 0.92.
        """
        self.structure_accuracy = _resolve_accuracy(structure_accuracy)

    def build(
        self, extracted: ExtractedDocument
    ) -> tuple[DocumentModel, ConversionStats]:
        """Assemble every page of a document in order.

        Args:
            extracted: Raw text, page count and info from the extractor.

        Returns:
            Tuple of (DocumentModel, ConversionStats).

        Raises:
            PipelineFault: If any stage fails. No partial model is returned.
        """
        start = time.perf_counter()
        metadata = DocumentMetadata.from_extracted(extracted)

        if not has_usable_text(extracted.raw_text):
            logger.warn(
                "no usable text extracted, emitting empty document",
                page_count=extracted.page_count,
                text_length=len(extracted.raw_text),
            )
            page = PageNode(
                page_number=1, children=[HeadingNode(text="Page 1", level=1)]
            )
            return DocumentModel(pages=[page], metadata=metadata), ConversionStats(
                page_count=1,
                processing_time_ms=_elapsed_ms(start),
                structures=StructureCounts(),
                structure_accuracy=EMPTY_DOCUMENT_ACCURACY,
            )

        try:
            text = normalize_text(extracted.raw_text)
            pages: list[PageNode] = []
            counts = StructureCounts()
            for index, page_text in enumerate(
                split_into_pages(text, extracted.page_count)
            ):
                assembly = assemble_page(index + 1, page_text)
                pages.append(assembly.page)
                counts = counts + assembly.counts
        except Exception as e:
            logger.error("document build failed", error=str(e), exc_info=True)
            raise PipelineFault(f"Failed to convert PDF to XML: {e}") from e

        stats = ConversionStats(
            page_count=len(pages),
            processing_time_ms=_elapsed_ms(start),
            structures=counts,
            structure_accuracy=self.structure_accuracy,
        )
        logger.info(
            "document built",
            page_count=stats.page_count,
            paragraphs=counts.paragraphs,
            tables=counts.tables,
            lists=counts.lists,
            images=counts.images,
            duration_ms=stats.processing_time_ms,
        )
        return DocumentModel(pages=pages, metadata=metadata), stats


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
