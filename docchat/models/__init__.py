"""Pydantic models for API requests and responses.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ChatTurn: Individual message in a transcript
    - Document: Uploaded file metadata plus its summary
    - ChatRequest: Incoming chat request payload
    - StreamChunk: One SSE event of a streamed reply
    - SelectionRequest / SelectionResponse: Context selection toggles
    - AuthRequest / AuthResponse: Sign up and sign in
"""

from docchat.models.schemas import (
    AuthRequest,
    AuthResponse,
    ChatDetail,
    ChatRequest,
    ChatSummary,
    ChatTurn,
    Document,
    DocumentEntry,
    DocumentListResponse,
    DocumentUploadResponse,
    SelectionRequest,
    SelectionResponse,
    StreamChunk,
    StreamStatus,
    UsageRequest,
)

__all__ = [
    "AuthRequest",
    "AuthResponse",
    "ChatDetail",
    "ChatRequest",
    "ChatSummary",
    "ChatTurn",
    "Document",
    "DocumentEntry",
    "DocumentListResponse",
    "DocumentUploadResponse",
    "SelectionRequest",
    "SelectionResponse",
    "StreamChunk",
    "StreamStatus",
    "UsageRequest",
]
