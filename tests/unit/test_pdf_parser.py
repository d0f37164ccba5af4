"""Unit tests for PDF validation."""

import pytest
import pytest_check as check

from docchat.parsing.pdf_parser import PDFParseError, count_pdf_pages


class TestCountPdfPagesValid:
    """Tests for readable PDFs."""

    def test_returns_page_count(self, pdf_bytes: bytes) -> None:
        """Valid PDF returns its number of pages."""
        check.equal(count_pdf_pages(pdf_bytes), 2)

    def test_accepts_leading_whitespace(self, pdf_bytes: bytes) -> None:
        """Whitespace before the header is tolerated."""
        check.equal(count_pdf_pages(b"\n  " + pdf_bytes), 2)


class TestCountPdfPagesRejection:
    """Tests for PDF validation and rejection."""

    def test_rejects_empty_bytes(self) -> None:
        """Empty bytes raises PDFParseError."""
        with pytest.raises(PDFParseError, match="Empty file"):
            count_pdf_pages(b"")

    def test_rejects_non_pdf_file(self) -> None:
        """File without a PDF header raises PDFParseError."""
        with pytest.raises(PDFParseError, match="Invalid PDF"):
            count_pdf_pages(b"This is just a text file pretending to be a PDF")

    def test_rejects_truncated_pdf(self) -> None:
        """Truncated PDF raises PDFParseError."""
        with pytest.raises(PDFParseError, match="Corrupt|Failed"):
            count_pdf_pages(b"%PDF-1.4\n1 0 obj\n<<")
