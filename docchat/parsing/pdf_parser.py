"""PDF validation using pypdf.

PDFs are sent to Gemini inline, so nothing is extracted here. We only make
sure the bytes are a readable PDF with at least one page before paying for
a summarization call.
"""

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

PDF_MAGIC_BYTES = b"%PDF"


class PDFParseError(Exception):
    """Raised when PDF validation fails."""

    pass


def count_pdf_pages(file_content: bytes) -> int:
    """Open a PDF and return its page count.

    Args:
        file_content: Raw bytes of the PDF file.

    Returns:
        Number of pages, always at least 1.

    Raises:
        PDFParseError: If the file is empty, has no PDF header, is corrupt,
            or has no pages.
    """
    if not file_content:
        raise PDFParseError("Empty file provided")

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise PDFParseError("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise PDFParseError("PDF contains no pages")

    logger.debug(f"Validated PDF with {pages} pages")
    return pages
