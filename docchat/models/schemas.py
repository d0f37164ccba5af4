from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from docchat.context.budget import BudgetUsage

Role = Literal["user", "assistant"]


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"


class ChatTurn(BaseModel):
    """A single message in a chat transcript.

    Attributes:
        role: Who said it, user or assistant.
        content: The message text.
    """

    role: Role
    content: str


class Document(BaseModel):
    """An uploaded file's metadata plus its AI-generated summary.

    Attributes:
        id: Backend row identifier.
        name: Original filename.
        media_type: MIME type reported at upload.
        size: Size of the uploaded file in bytes.
        summary: Summarized (or extracted) text used as chat context.
        created_at: ISO timestamp of the upload.
    """

    id: str
    name: str
    media_type: str
    size: int = Field(ge=0)
    summary: str
    created_at: str | None = None


class DocumentEntry(Document):
    """A document as listed to the client, with its estimated token cost."""

    tokens: int = Field(ge=0)


class DocumentListResponse(BaseModel):
    documents: list[DocumentEntry]
    token_limit: int


class DocumentUploadResponse(BaseModel):
    """Response after a file has been summarized and stored.

    Attributes:
        document: The stored document.
        success: Whether the upload was successful.
        error: Error message if upload failed.
    """

    document: DocumentEntry | None = None
    success: bool
    error: str | None = None


class ChatRequest(BaseModel):
    """Request payload for the streaming chat endpoint.

    Attributes:
        message: User's question or prompt.
        chat_id: Existing chat to continue, or None to start a new one.
        document_ids: Documents selected as context.
    """

    message: str = Field(..., min_length=1)
    chat_id: str | None = None
    document_ids: list[str] = Field(default_factory=list)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text delta carried by this chunk.
        done: Whether this is the final chunk.
        status: Current send status (sending, streaming, complete, error).
        error: Error message if something went wrong.
        chat_id: Identifier of the saved chat, set on the final chunk.
    """

    content: str
    done: bool
    status: StreamStatus | None = None
    error: str | None = None
    chat_id: str | None = None


class SelectionRequest(BaseModel):
    """Toggle one document in the current selection."""

    document_id: str
    selected_ids: list[str] = Field(default_factory=list)


class UsageRequest(BaseModel):
    selected_ids: list[str] = Field(default_factory=list)


class SelectionResponse(BaseModel):
    """Outcome of a selection toggle.

    Attributes:
        selected_ids: The selection after the toggle.
        accepted: False when the document was refused for budget reasons.
        usage: Token usage of the resulting selection.
        message: Explanation shown to the user on refusal.
    """

    selected_ids: list[str]
    accepted: bool
    usage: BudgetUsage
    message: str | None = None


class ChatSummary(BaseModel):
    id: str
    title: str
    updated_at: str | None = None


class ChatDetail(BaseModel):
    """A stored chat with its full transcript and context documents."""

    id: str
    title: str
    turns: list[ChatTurn]
    document_ids: list[str]


class AuthRequest(BaseModel):
    """Credentials for sign up and sign in."""

    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class AuthResponse(BaseModel):
    """Result of an auth call.

    Attributes:
        user_id: Backend user identifier.
        email: The user's email address.
        access_token: Bearer token for subsequent requests, None until the
            email address is confirmed after sign up.
        message: Human readable outcome.
    """

    user_id: str
    email: str | None = None
    access_token: str | None = None
    message: str
