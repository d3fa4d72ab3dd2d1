"""Tests for PDF extraction."""

import pytest

from pdf_xml_server.converter.extractor import (
    ExtractionInputError,
    _pdf_version,
    extract_pdf,
    is_garbage_text,
)


class TestExtractPdf:
    """Tests for extract_pdf."""

    def test_extract_from_path(self, sample_pdf_path):
        extracted = extract_pdf(sample_pdf_path)

        assert extracted.page_count == 2
        assert "Quarterly Report" in extracted.raw_text
        assert "Next quarter is expected to be flat." in extracted.raw_text
        assert extracted.file_size == sample_pdf_path.stat().st_size

    def test_extract_from_bytes(self, sample_pdf_bytes):
        extracted = extract_pdf(sample_pdf_bytes)
        assert extracted.page_count == 2
        assert extracted.file_size == len(sample_pdf_bytes)

    def test_pages_separated_by_blank_line(self, sample_pdf_bytes):
        extracted = extract_pdf(sample_pdf_bytes)
        first, second = extracted.raw_text.split("\n\n")
        assert "Quarterly Report" in first
        assert "Outlook" in second

    def test_document_info(self, sample_pdf_bytes):
        info = extract_pdf(sample_pdf_bytes).info
        assert info.title == "Quarterly Report"
        assert info.author == "Finance Team"

    def test_blank_pdf(self, pdf_factory):
        extracted = extract_pdf(pdf_factory([[]]))
        assert extracted.raw_text == ""
        assert extracted.page_count == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            extract_pdf(tmp_path / "missing.pdf")

    def test_not_a_pdf(self):
        with pytest.raises(ExtractionInputError):
            extract_pdf(b"PK\x03\x04 this is a zip archive")

    def test_not_a_pdf_path(self, tmp_path):
        path = tmp_path / "notes.pdf"
        path.write_text("plain text pretending to be a pdf")
        with pytest.raises(ExtractionInputError):
            extract_pdf(path)


class TestHelpers:
    """Tests for extraction helpers."""

    def test_pdf_version(self):
        assert _pdf_version("PDF 1.7") == "1.7"
        assert _pdf_version("") is None
        assert _pdf_version(None) is None

    def test_garbage_text(self):
        assert is_garbage_text("\x01\x02\x03\x04" * 10)

    def test_normal_text_is_not_garbage(self):
        assert not is_garbage_text("Ordinary text\nwith lines\tand tabs " * 3)

    def test_short_text_is_not_garbage(self):
        assert not is_garbage_text("\x01\x02")
