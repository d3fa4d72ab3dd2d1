"""Tests for the document builder."""

import pytest

from pdf_xml_server.converter.builder import (
    DEFAULT_STRUCTURE_ACCURACY,
    DocumentBuilder,
    PipelineFault,
    normalize_text,
    split_into_pages,
)
from pdf_xml_server.converter.models import (
    DocumentInfo,
    ExtractedDocument,
    HeadingNode,
    ParagraphNode,
)


@pytest.fixture
def builder(monkeypatch):
    monkeypatch.delenv("STRUCTURE_ACCURACY", raising=False)
    return DocumentBuilder()


class TestSplitIntoPages:
    """Tests for proportional page splitting."""

    def test_even_split(self):
        text = "a" * 50 + "b" * 50
        pages = split_into_pages(text, 2)
        assert [len(p) for p in pages] == [50, 50]
        assert pages == ["a" * 50, "b" * 50]

    def test_uneven_split_is_contiguous(self):
        text = "0123456789"
        pages = split_into_pages(text, 3)
        assert pages == ["012", "345", "6789"]
        assert "".join(pages) == text

    def test_single_page(self):
        assert split_into_pages("hello", 1) == ["hello"]

    def test_more_pages_than_characters(self):
        pages = split_into_pages("ab", 4)
        assert len(pages) == 4
        assert "".join(pages) == "ab"


class TestNormalizeText:
    """Tests for whitespace normalization."""

    def test_line_endings_and_blank_runs(self):
        assert normalize_text("a\r\nb  \n\n\n\nc ") == "a\nb\n\nc"

    def test_single_newlines_are_kept(self):
        assert normalize_text("one\ntwo") == "one\ntwo"

    def test_surrounding_whitespace_stripped(self):
        assert normalize_text("\n\n  text \n") == "text"


class TestDocumentBuilder:
    """Tests for DocumentBuilder.build."""

    def test_simple_document(self, builder):
        extracted = ExtractedDocument(
            raw_text="Title\n\nThis is a paragraph.\n\nThis is another paragraph.",
            page_count=1,
        )
        document, stats = builder.build(extracted)

        assert len(document.pages) == 1
        page = document.pages[0]
        assert page.children[0] == HeadingNode(text="Page 1", level=1)
        assert page.children[1] == HeadingNode(text="Title", level=1)
        assert isinstance(page.children[2], ParagraphNode)
        assert stats.page_count == 1
        assert stats.structures.paragraphs == 2
        assert stats.structure_accuracy == DEFAULT_STRUCTURE_ACCURACY
        assert stats.processing_time_ms >= 0

    def test_pages_are_numbered_in_order(self, builder):
        extracted = ExtractedDocument(raw_text="Alpha section\n\n" * 10, page_count=3)
        document, stats = builder.build(extracted)

        assert [p.page_number for p in document.pages] == [1, 2, 3]
        assert stats.page_count == 3
        for page in document.pages:
            assert page.children[0] == HeadingNode(text=f"Page {page.page_number}", level=1)

    def test_counts_sum_over_pages(self, builder):
        text = "- one\n\n- two\n\nA closing sentence, with commas.\n\n" * 2
        document, stats = builder.build(ExtractedDocument(raw_text=text, page_count=1))

        assert stats.structures.lists == 2
        assert stats.structures.paragraphs == 2

    def test_empty_text_gives_fallback(self, builder):
        document, stats = builder.build(ExtractedDocument(raw_text="   ", page_count=3))

        assert len(document.pages) == 1
        assert document.pages[0].children == [HeadingNode(text="Page 1", level=1)]
        assert stats.page_count == 1
        assert stats.structures.total() == 0
        assert stats.structure_accuracy == 0.0

    def test_garbage_text_gives_fallback(self, builder):
        garbage = "\x01\x02\x03\x04" * 10 + "abc"
        document, stats = builder.build(ExtractedDocument(raw_text=garbage, page_count=2))

        assert len(document.pages) == 1
        assert stats.structure_accuracy == 0.0

    def test_metadata_defaults(self, builder):
        document, _ = builder.build(ExtractedDocument(raw_text="Hello there"))
        meta = document.metadata

        assert meta.title == "Untitled Document"
        assert meta.author == "Unknown Author"
        assert meta.creator == "Unknown Creator"
        assert meta.producer == "Unknown Producer"
        assert meta.pdf_version == "Unknown"
        assert meta.creation_date

    def test_metadata_from_document_info(self, builder):
        extracted = ExtractedDocument(
            raw_text="Hello there",
            info=DocumentInfo(title="Annual Report", author="", version="1.7"),
            file_size=2048,
        )
        document, _ = builder.build(extracted)

        assert document.metadata.title == "Annual Report"
        assert document.metadata.author == "Unknown Author"
        assert document.metadata.pdf_version == "1.7"
        assert document.metadata.file_size_bytes == 2048

    def test_stage_failure_raises_pipeline_fault(self, builder, monkeypatch):
        def broken_assemble(page_number, page_text):
            raise RuntimeError("classifier exploded")

        monkeypatch.setattr(
            "pdf_xml_server.converter.builder.assemble_page", broken_assemble
        )

        with pytest.raises(PipelineFault) as exc_info:
            builder.build(ExtractedDocument(raw_text="Some text here"))

        assert "Failed to convert PDF to XML" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_accuracy_from_env(self, monkeypatch):
        monkeypatch.setenv("STRUCTURE_ACCURACY", "0.85")
        assert DocumentBuilder().structure_accuracy == 0.85

    def test_explicit_accuracy_wins(self, monkeypatch):
        monkeypatch.setenv("STRUCTURE_ACCURACY", "0.85")
        assert DocumentBuilder(structure_accuracy=0.5).structure_accuracy == 0.5

    def test_accuracy_out_of_range(self):
        with pytest.raises(ValueError):
            DocumentBuilder(structure_accuracy=1.5)

    def test_stats_alias_dump(self, builder):
        _, stats = builder.build(ExtractedDocument(raw_text="Hello there"))
        dumped = stats.model_dump(by_alias=True)

        assert set(dumped) == {
            "pageCount",
            "processingTimeMs",
            "structures",
            "structureAccuracy",
        }
        assert set(dumped["structures"]) == {"paragraphs", "tables", "lists", "images"}
