"""Shared fixtures: PDFs generated on the fly with PyMuPDF."""

from pathlib import Path

import fitz  # PyMuPDF
import pytest


def build_pdf(pages: list[list[str]], metadata: dict | None = None) -> bytes:
    """Create a PDF where each page holds the given lines of text."""
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        y = 72
        for line in lines:
            page.insert_text((72, y), line, fontsize=12, fontname="helv")
            y += 20
    if metadata:
        doc.set_metadata(metadata)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(scope="session")
def sample_pdf_bytes() -> bytes:
    return build_pdf(
        [
            [
                "Quarterly Report",
                "Revenue grew in every region during the quarter.",
                "Figure 1: revenue by region.",
            ],
            [
                "Outlook",
                "Next quarter is expected to be flat.",
            ],
        ],
        metadata={"title": "Quarterly Report", "author": "Finance Team"},
    )


@pytest.fixture
def sample_pdf_path(tmp_path, sample_pdf_bytes) -> Path:
    pdf_path = tmp_path / "report.pdf"
    pdf_path.write_bytes(sample_pdf_bytes)
    return pdf_path


@pytest.fixture
def pdf_factory():
    """Return the PDF builder so tests can make their own documents."""
    return build_pdf
