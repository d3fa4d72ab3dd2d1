"""Tests for conversion orchestration."""

import json

import pytest

from pdf_xml_server.conversions import (
    ConversionAccessError,
    ConversionNotFoundError,
    ConversionNotReadyError,
    ConversionService,
    convert_pdf_to_xml,
    xml_filename,
)
from pdf_xml_server.converter import DocumentBuilder, PipelineFault
from pdf_xml_server.logger import StructuredLogger
from pdf_xml_server.storage import MemoryStorage


class ExplodingBuilder(DocumentBuilder):
    def build(self, extracted):
        raise PipelineFault("Failed to convert PDF to XML: boom")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def service(storage):
    return ConversionService(storage, DocumentBuilder(structure_accuracy=0.92))


@pytest.fixture
def user(storage):
    return storage.create_user("alice", "alice@example.com", "hash.salt")


class TestConvertPdfToXml:
    def test_converts_real_pdf(self, sample_pdf_bytes):
        result = convert_pdf_to_xml(sample_pdf_bytes, DocumentBuilder(structure_accuracy=0.92))

        assert result.metadata.page_count == 2
        assert result.metadata.structure_accuracy == 0.92
        assert '<section id="page-1">' in result.xml
        assert '<section id="page-2">' in result.xml
        assert "<title>Quarterly Report</title>" in result.xml
        assert len(result.document.pages) == 2

    def test_unreadable_input_gives_empty_document(self):
        result = convert_pdf_to_xml(b"definitely not a pdf")

        assert result.metadata.page_count == 1
        assert result.metadata.structure_accuracy == 0.0
        assert result.metadata.structures.total() == 0
        assert '<heading level="1">Page 1</heading>' in result.xml

    def test_pipeline_fault_propagates(self, sample_pdf_bytes):
        with pytest.raises(PipelineFault):
            convert_pdf_to_xml(sample_pdf_bytes, ExplodingBuilder())


class TestConversionService:
    def test_create_conversion(self, service, user, sample_pdf_bytes):
        record = service.create_conversion(user.id, "report.pdf", sample_pdf_bytes)

        assert record.status == "completed"
        assert record.user_id == user.id
        assert record.original_size == len(sample_pdf_bytes)
        assert record.xml_content.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert record.converted_size == len(record.xml_content.encode("utf-8"))
        assert record.metadata["pageCount"] == 2
        assert record.metadata["structureAccuracy"] == 0.92
        assert set(record.metadata["structures"]) == {"paragraphs", "tables", "lists", "images"}

    def test_failed_conversion_is_recorded(self, storage, user, sample_pdf_bytes):
        service = ConversionService(storage, ExplodingBuilder())

        with pytest.raises(PipelineFault):
            service.create_conversion(user.id, "report.pdf", sample_pdf_bytes)

        [record] = storage.list_user_conversions(user.id)
        assert record.status == "failed"
        assert record.metadata == {"error": "Failed to convert PDF to XML: boom"}

    def test_log_context_cleared_after_conversion(self, service, user, sample_pdf_bytes, capsys):
        log = StructuredLogger("pdf_xml_server.test.conversions")
        service.create_conversion(user.id, "report.pdf", sample_pdf_bytes)
        capsys.readouterr()

        log.info("after conversion")
        entry = json.loads(capsys.readouterr().out.splitlines()[-1])
        assert "conversion_id" not in entry
        assert "file_name" not in entry

    def test_get_conversion_ownership(self, service, storage, user, sample_pdf_bytes):
        record = service.create_conversion(user.id, "report.pdf", sample_pdf_bytes)
        other = storage.create_user("bob", "bob@example.com", "hash.salt")

        assert service.get_conversion(user.id, record.id).id == record.id
        with pytest.raises(ConversionAccessError):
            service.get_conversion(other.id, record.id)

    def test_get_missing_conversion(self, service, user):
        with pytest.raises(ConversionNotFoundError):
            service.get_conversion(user.id, "missing")

    def test_list_conversions(self, service, user, sample_pdf_bytes):
        service.create_conversion(user.id, "a.pdf", sample_pdf_bytes)
        service.create_conversion(user.id, "b.pdf", sample_pdf_bytes)
        assert len(service.list_conversions(user.id)) == 2
        assert service.list_conversions("someone-else") == []

    def test_delete_conversion(self, service, user, sample_pdf_bytes):
        record = service.create_conversion(user.id, "report.pdf", sample_pdf_bytes)

        assert service.delete_conversion(user.id, record.id) is True
        with pytest.raises(ConversionNotFoundError):
            service.get_conversion(user.id, record.id)

    def test_delete_requires_ownership(self, service, user, sample_pdf_bytes):
        record = service.create_conversion(user.id, "report.pdf", sample_pdf_bytes)
        with pytest.raises(ConversionAccessError):
            service.delete_conversion("intruder", record.id)

    def test_download(self, service, user, sample_pdf_bytes):
        record = service.create_conversion(user.id, "Report.PDF", sample_pdf_bytes)
        filename, xml = service.download(user.id, record.id)

        assert filename == "Report.xml"
        assert xml == record.xml_content

    def test_download_not_ready(self, service, storage, user):
        record = storage.create_conversion(user.id, "report.pdf", 10, status="processing")
        with pytest.raises(ConversionNotReadyError):
            service.download(user.id, record.id)


class TestXmlFilename:
    @pytest.mark.parametrize(
        "original,expected",
        [
            ("report.pdf", "report.xml"),
            ("Report.PDF", "Report.xml"),
            ("archive.pdf.pdf", "archive.pdf.xml"),
            ("notes", "notes"),
        ],
    )
    def test_xml_filename(self, original, expected):
        assert xml_filename(original) == expected
