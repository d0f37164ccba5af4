"""Upload handling for document summarization.

Responsibilities:
    - Size and emptiness checks for every upload
    - PDF validation with pypdf (header, readability, page count)
    - Image and PDF passthrough as inline bytes
    - Text decoding for plain documents

Output is an IngestedFile ready for the summarization agent.
"""

from docchat.parsing.ingest import (
    MAX_FILE_SIZE,
    FileKind,
    IngestedFile,
    UnsupportedFileError,
    ingest_file,
)
from docchat.parsing.pdf_parser import PDFParseError, count_pdf_pages

__all__ = [
    "MAX_FILE_SIZE",
    "FileKind",
    "IngestedFile",
    "PDFParseError",
    "UnsupportedFileError",
    "count_pdf_pages",
    "ingest_file",
]
