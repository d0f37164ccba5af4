"""Document endpoints: list, upload with summarization, delete.

Uploads are validated, prepared for Gemini, summarized, and stored in
Supabase as the document's chat context.
"""

import logging

from fastapi import APIRouter, HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from docchat.agent.gemini_agent import LLMServiceError
from docchat.api.deps import Agents, Budget, CurrentUser, Store
from docchat.context.budget import estimate_cost
from docchat.models.schemas import (
    Document,
    DocumentEntry,
    DocumentListResponse,
    DocumentUploadResponse,
)
from docchat.parsing.ingest import MAX_FILE_SIZE, UnsupportedFileError, ingest_file
from docchat.storage.supabase_store import NotFoundError, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

# 10MB limit matches the ingestion constant
MAX_UPLOAD_SIZE = MAX_FILE_SIZE


def to_entry(document: Document) -> DocumentEntry:
    """Attach the estimated token cost to a document."""
    return DocumentEntry(**document.model_dump(), tokens=estimate_cost(document.summary))


def _validate_filename(filename: str | None) -> str:
    """Validate that the upload has a filename.

    Raises:
        HTTPException: 400 if the filename is missing.
    """
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )
    return filename


async def _read_and_validate_size(file: UploadFile) -> bytes:
    """Read file content and validate size.

    Raises:
        HTTPException: 413 if file exceeds size limit.
    """
    content = await file.read()

    if len(content) > MAX_UPLOAD_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)",
        )

    return content


@router.get("", response_model=DocumentListResponse)
def list_documents(user: CurrentUser, store: Store, budget: Budget) -> DocumentListResponse:
    """List the user's documents, newest first, with token estimates."""
    documents = store.list_documents(user.id)
    return DocumentListResponse(
        documents=[to_entry(doc) for doc in documents],
        token_limit=budget.token_limit,
    )


@router.post("", response_model=DocumentUploadResponse)
async def upload_document(
    file: UploadFile,
    user: CurrentUser,
    store: Store,
    agents: Agents,
) -> DocumentUploadResponse:
    """Upload a file, summarize it with Gemini and store the summary.

    Images and PDFs are sent to the model inline; other files are read as
    text and stored as a short summary followed by the full content.

    Raises:
        400: Missing filename, empty or unreadable file, corrupt PDF.
        413: File exceeds 10MB limit.
        502: Gemini failed to summarize the file.
        500: The summary could not be stored.
    """
    filename = _validate_filename(file.filename)
    content = await _read_and_validate_size(file)

    try:
        ingested = ingest_file(filename, file.content_type, content)
    except UnsupportedFileError as e:
        logger.warning(f"Rejected upload {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    try:
        summary = await agents.summarize(ingested)
    except LLMServiceError as e:
        logger.error(f"Failed to analyze {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to analyze file: {e}",
        ) from e

    if not summary.strip():
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The model returned an empty summary",
        )

    try:
        document = await run_in_threadpool(
            store.create_document,
            user.id,
            filename,
            ingested.mime_type,
            ingested.size,
            summary,
        )
    except StorageError as e:
        logger.error(f"Failed to store document {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store document",
        ) from e

    logger.info(f"Successfully ingested {ingested.kind.value}: {filename}")
    return DocumentUploadResponse(document=to_entry(document), success=True)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(document_id: str, user: CurrentUser, store: Store) -> None:
    """Delete one of the user's documents."""
    try:
        store.delete_document(user.id, document_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
