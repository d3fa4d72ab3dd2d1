"""Conversion orchestration: PDF bytes to stored XML records."""

import re
import time

from .converter import (
    ConversionResult,
    DocumentBuilder,
    ExtractedDocument,
    ExtractionInputError,
    extract_pdf,
    serialize,
)
from .logger import clear_context, logger, set_context
from .storage import ConversionRecord, Storage


class ConversionNotFoundError(LookupError):
    """Raised when a conversion record does not exist."""

    pass


class ConversionAccessError(PermissionError):
    """Raised when a user asks for another user's conversion."""

    pass


class ConversionNotReadyError(ValueError):
    """Raised when XML is requested for a conversion that has not completed."""

    pass


_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)


def xml_filename(original_filename: str) -> str:
    """Swap a trailing .pdf (any case) for .xml."""
    return _PDF_SUFFIX.sub(".xml", original_filename)


def convert_pdf_to_xml(
    pdf_bytes: bytes, builder: DocumentBuilder | None = None
) -> ConversionResult:
    """Convert a PDF into structural XML.

    Unreadable input does not abort the conversion: it yields an empty,
    zero-confidence document instead.

    Args:
        pdf_bytes: Raw PDF file content.
        builder: DocumentBuilder to use; a default one is created if None.

    Returns:
        ConversionResult holding the XML string and conversion statistics.

    Raises:
        PipelineFault: If the structure pipeline fails.
    """
    builder = builder or DocumentBuilder()
    start = time.perf_counter()
    logger.info("converting pdf", file_size=len(pdf_bytes))

    try:
        extracted = extract_pdf(pdf_bytes)
    except ExtractionInputError as e:
        logger.warn("pdf extraction failed, using empty document", error=str(e))
        extracted = ExtractedDocument(raw_text="", page_count=1, file_size=len(pdf_bytes))

    document, stats = builder.build(extracted)
    xml = serialize(document)

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "conversion completed",
        page_count=stats.page_count,
        xml_size=len(xml.encode("utf-8")),
        duration_ms=round(duration_ms, 2),
    )
    return ConversionResult(xml=xml, metadata=stats, document=document)


class ConversionService:
    """Runs conversions for users and keeps their records in storage."""

    def __init__(self, storage: Storage, builder: DocumentBuilder | None = None):
        """Initialize the service.

        Args:
            storage: Backend holding conversion records.
            builder: DocumentBuilder shared by all conversions.
        """
        self.storage = storage
        self.builder = builder or DocumentBuilder()

    def create_conversion(
        self, user_id: str, filename: str, pdf_bytes: bytes
    ) -> ConversionRecord:
        """Convert an uploaded PDF and persist the outcome.

        The record is created as ``processing`` and ends as ``completed`` or
        ``failed``. On failure the error message is stored in the record's
        metadata and the exception is re-raised.

        Args:
            user_id: Owner of the conversion.
            filename: Original upload file name.
            pdf_bytes: Uploaded PDF content.

        Returns:
            The completed ConversionRecord.
        """
        record = self.storage.create_conversion(
            user_id=user_id,
            original_filename=filename,
            original_size=len(pdf_bytes),
            status="processing",
        )
        set_context(conversion_id=record.id, file_name=filename)

        try:
            try:
                result = convert_pdf_to_xml(pdf_bytes, builder=self.builder)
            except Exception as e:
                logger.error("conversion failed", error=str(e))
                try:
                    self.storage.update_conversion(
                        record.id, status="failed", metadata={"error": str(e)}
                    )
                except Exception as update_error:
                    logger.error(
                        "failed to mark conversion as failed",
                        error=str(update_error),
                    )
                raise

            updated = self.storage.update_conversion(
                record.id,
                status="completed",
                xml_content=result.xml,
                converted_size=len(result.xml.encode("utf-8")),
                metadata=result.metadata.model_dump(by_alias=True),
            )
            if updated is None:
                raise ConversionNotFoundError(f"Conversion {record.id} disappeared during processing")
            return updated
        finally:
            clear_context()

    def list_conversions(self, user_id: str) -> list[ConversionRecord]:
        return self.storage.list_user_conversions(user_id)

    def get_conversion(self, user_id: str, conversion_id: str) -> ConversionRecord:
        record = self.storage.get_conversion(conversion_id)
        if record is None:
            raise ConversionNotFoundError("Conversion not found")
        if record.user_id != user_id:
            raise ConversionAccessError("Unauthorized access to this conversion")
        return record

    def delete_conversion(self, user_id: str, conversion_id: str) -> bool:
        self.get_conversion(user_id, conversion_id)
        return self.storage.delete_conversion(conversion_id)

    def download(self, user_id: str, conversion_id: str) -> tuple[str, str]:
        """Return ``(filename, xml)`` for a completed conversion."""
        record = self.get_conversion(user_id, conversion_id)
        if record.status != "completed" or not record.xml_content:
            raise ConversionNotReadyError("XML content not available")
        return xml_filename(record.original_filename), record.xml_content
