from .models import (
    Block,
    BlockKind,
    ConversionResult,
    ConversionStats,
    DocumentInfo,
    DocumentMetadata,
    DocumentModel,
    ExtractedDocument,
    HeadingNode,
    ImageNode,
    ListNode,
    PageNode,
    ParagraphNode,
    StructureCounts,
    Table,
    TableNode,
)
from .segmenter import segment
from .classifier import classify, CLASSIFICATION_RULES
from .tables import is_table, parse_table
from .assembler import assemble_page, PageAssembly
from .builder import DocumentBuilder, PipelineFault, split_into_pages, normalize_text
from .serializer import serialize
from .extractor import extract_pdf, ExtractionInputError

__all__ = [
    # Models
    "Block",
    "BlockKind",
    "ConversionResult",
    "ConversionStats",
    "DocumentInfo",
    "DocumentMetadata",
    "DocumentModel",
    "ExtractedDocument",
    "HeadingNode",
    "ImageNode",
    "ListNode",
    "PageNode",
    "ParagraphNode",
    "StructureCounts",
    "Table",
    "TableNode",
    # Pipeline stages
    "segment",
    "classify",
    "CLASSIFICATION_RULES",
    "is_table",
    "parse_table",
    "assemble_page",
    "PageAssembly",
    "DocumentBuilder",
    "PipelineFault",
    "split_into_pages",
    "normalize_text",
    "serialize",
    # Extraction
    "extract_pdf",
    "ExtractionInputError",
]
