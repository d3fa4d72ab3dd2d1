"""Data models for the PDF structure conversion pipeline."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class DocumentInfo(BaseModel):
    """Document information reported by the PDF extractor."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    author: str | None = None
    creator: str | None = None
    producer: str | None = None
    creation_date: str | None = None
    version: str | None = None


class ExtractedDocument(BaseModel):
    """Raw text and document info pulled out of a PDF."""

    model_config = ConfigDict(frozen=True)

    raw_text: str
    page_count: int = Field(default=1, ge=1)
    info: DocumentInfo = Field(default_factory=DocumentInfo)
    file_size: int = Field(default=0, ge=0)


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST_ITEM = "listItem"
    TABLE_ROW = "tableRow"
    IMAGE_PLACEHOLDER = "imagePlaceholder"


class Block(BaseModel):
    """One classified segment of page text."""

    model_config = ConfigDict(frozen=True)

    kind: BlockKind
    text: str
    order: int
    heading_level: int | None = Field(default=None, ge=1, le=3)
    rows: list[list[str]] | None = None  # only for TABLE_ROW blocks


class Table(BaseModel):
    """Rows of cell strings reconstructed from a tabular segment."""

    model_config = ConfigDict(frozen=True)

    rows: list[list[str]] = Field(default_factory=list)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)


# --- Page children ---


class HeadingNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["heading"] = "heading"
    text: str
    level: int = Field(ge=1, le=3)


class ParagraphNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["paragraph"] = "paragraph"
    text: str


class ListNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    items: list[str]


class TableNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["table"] = "table"
    rows: list[list[str]]


class ImageNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["imagePlaceholder"] = "imagePlaceholder"
    src: str
    alt: str = "Image placeholder"
    description: str = "Image content detected but not extracted"


PageChild = Annotated[
    Union[HeadingNode, ParagraphNode, ListNode, TableNode, ImageNode],
    Field(discriminator="kind"),
]


class PageNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    children: list[PageChild] = Field(default_factory=list)


class DocumentMetadata(BaseModel):
    """Document-level metadata written into the XML header."""

    model_config = ConfigDict(frozen=True)

    title: str = "Untitled Document"
    author: str = "Unknown Author"
    creator: str = "Unknown Creator"
    producer: str = "Unknown Producer"
    creation_date: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    file_size_bytes: int = Field(default=0, ge=0)
    pdf_version: str = "Unknown"

    @classmethod
    def from_extracted(cls, extracted: ExtractedDocument) -> "DocumentMetadata":
        """Fill metadata from extractor output, keeping defaults for blanks."""
        info = extracted.info
        values = {
            "title": info.title,
            "author": info.author,
            "creator": info.creator,
            "producer": info.producer,
            "creation_date": info.creation_date,
            "pdf_version": info.version,
        }
        return cls(
            file_size_bytes=extracted.file_size,
            **{k: v for k, v in values.items() if v},
        )


class DocumentModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    pages: list[PageNode] = Field(default_factory=list)
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)


class StructureCounts(BaseModel):
    """Element totals for a page or a whole document."""

    model_config = ConfigDict(frozen=True)

    paragraphs: int = Field(default=0, ge=0)
    tables: int = Field(default=0, ge=0)
    lists: int = Field(default=0, ge=0)
    images: int = Field(default=0, ge=0)

    def __add__(self, other: "StructureCounts") -> "StructureCounts":
        return StructureCounts(
            paragraphs=self.paragraphs + other.paragraphs,
            tables=self.tables + other.tables,
            lists=self.lists + other.lists,
            images=self.images + other.images,
        )

    def total(self) -> int:
        return self.paragraphs + self.tables + self.lists + self.images


class ConversionStats(BaseModel):
    """Statistics reported alongside a converted document.

    Dumped with ``by_alias=True`` the keys match the stored metadata shape
    (``pageCount``, ``processingTimeMs``, ``structures``, ``structureAccuracy``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page_count: int = Field(alias="pageCount", ge=0)
    processing_time_ms: float = Field(alias="processingTimeMs", ge=0)
    structures: StructureCounts = Field(default_factory=StructureCounts)
    structure_accuracy: float = Field(alias="structureAccuracy", ge=0.0, le=1.0)


class ConversionResult(BaseModel):
    """Output of a full PDF to XML conversion."""

    model_config = ConfigDict(frozen=True)

    xml: str
    metadata: ConversionStats
    document: DocumentModel
