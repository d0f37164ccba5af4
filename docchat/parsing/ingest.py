"""Turn an uploaded file into something Gemini can summarize.

Images and PDFs travel inline as bytes with their MIME type. Everything
else is treated as a text document and decoded.
"""

import logging
from enum import Enum

from pydantic import BaseModel, Field

from docchat.parsing.pdf_parser import PDFParseError, count_pdf_pages

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MIME_TYPE = "application/pdf"


class FileKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    DOCUMENT = "document"


class IngestedFile(BaseModel):
    """An upload prepared for summarization.

    Attributes:
        kind: image, pdf or document.
        name: Original filename.
        mime_type: MIME type of the upload.
        size: Upload size in bytes.
        data: Raw bytes for image and PDF uploads.
        text: Decoded text for document uploads.
        pages: Page count for PDFs.
    """

    kind: FileKind
    name: str
    mime_type: str
    size: int = Field(ge=0)
    data: bytes | None = None
    text: str | None = None
    pages: int | None = None


class UnsupportedFileError(Exception):
    """Raised when an upload cannot be prepared for summarization."""

    pass


def classify(mime_type: str) -> FileKind:
    """Map a MIME type to the way the file is sent to the model."""
    if mime_type.startswith("image/"):
        return FileKind.IMAGE
    if mime_type == PDF_MIME_TYPE:
        return FileKind.PDF
    return FileKind.DOCUMENT


def ingest_file(name: str, mime_type: str | None, data: bytes) -> IngestedFile:
    """Prepare an upload for summarization.

    Args:
        name: Original filename.
        mime_type: Content type reported by the client. Files ending in
            .pdf are treated as PDFs when the browser sends no type.
        data: Raw file bytes.

    Returns:
        IngestedFile carrying either inline bytes or decoded text.

    Raises:
        UnsupportedFileError: If the file is empty, too large, a corrupt
            PDF, or a text document with no readable text.
    """
    if not data:
        raise UnsupportedFileError("Empty file provided")

    if len(data) > MAX_FILE_SIZE:
        size_mb = len(data) / (1024 * 1024)
        raise UnsupportedFileError(
            f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)"
        )

    mime_type = (mime_type or "").split(";")[0].strip().lower()
    if not mime_type or mime_type == "application/octet-stream":
        mime_type = PDF_MIME_TYPE if name.lower().endswith(".pdf") else "text/plain"

    kind = classify(mime_type)

    if kind is FileKind.IMAGE:
        return IngestedFile(kind=kind, name=name, mime_type=mime_type, size=len(data), data=data)

    if kind is FileKind.PDF:
        try:
            pages = count_pdf_pages(data)
        except PDFParseError as e:
            raise UnsupportedFileError(str(e)) from e
        return IngestedFile(
            kind=kind, name=name, mime_type=mime_type, size=len(data), data=data, pages=pages
        )

    text = data.decode("utf-8", errors="replace")
    if not text.strip():
        raise UnsupportedFileError("Document contains no readable text")

    logger.debug(f"Decoded text document {name} ({len(text)} chars)")
    return IngestedFile(kind=kind, name=name, mime_type=mime_type, size=len(data), text=text)
