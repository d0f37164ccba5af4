"""Supabase persistence for documents, chats and auth.

The server talks to Supabase with the service role key and scopes every
query by the authenticated user's id. Auth calls that create a user session
(sign up, sign in) go through a short-lived anon-key client so the shared
client never picks up a user's session.

supabase-py is synchronous. Async callers run these methods in a
threadpool.

Tables:
    - file_uploads: user_id, file_name, file_type, file_size, extracted_info, created_at
    - chats: user_id, title, updated_at
    - chat_files: chat_id, file_id
    - chat_messages: chat_id, role, content, created_at
"""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel
from supabase import Client, create_client

from docchat.models.schemas import ChatDetail, ChatSummary, ChatTurn, Document
from docchat.storage.config import SupabaseConfig, get_supabase_config

logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "file_uploads"
CHATS_TABLE = "chats"
CHAT_FILES_TABLE = "chat_files"
MESSAGES_TABLE = "chat_messages"

TITLE_MAX_CHARS = 50
DEFAULT_TITLE = "New Chat"


class StorageError(Exception):
    """Raised when a Supabase call fails."""

    pass


class NotFoundError(StorageError):
    """Raised when a row does not exist or belongs to another user."""

    pass


class AuthenticationError(Exception):
    """Raised when credentials or an access token are rejected."""

    pass


class AuthUser(BaseModel):
    """The authenticated user behind a request."""

    id: str
    email: str | None = None


class AuthSession(BaseModel):
    """Outcome of sign up or sign in.

    Attributes:
        user: The user.
        access_token: Bearer token, None while email confirmation is pending.
    """

    user: AuthUser
    access_token: str | None = None


def _now() -> str:
    return datetime.now(UTC).isoformat()


def chat_title(turns: list[ChatTurn]) -> str:
    """Derive a chat title from the first user turn, truncated to 50 characters."""
    first = next((t.content for t in turns if t.role == "user" and t.content.strip()), "")
    return first[:TITLE_MAX_CHARS] or DEFAULT_TITLE


def _to_document(row: dict) -> Document:
    return Document(
        id=str(row["id"]),
        name=row["file_name"],
        media_type=row.get("file_type") or "",
        size=row.get("file_size") or 0,
        summary=row.get("extracted_info") or "",
        created_at=row.get("created_at"),
    )


def _to_summary(row: dict) -> ChatSummary:
    return ChatSummary(
        id=str(row["id"]),
        title=row.get("title") or DEFAULT_TITLE,
        updated_at=row.get("updated_at"),
    )


class SupabaseStore:
    """Repository over the Supabase tables and auth API."""

    def __init__(self, client: Client, auth_client_factory: Callable[[], Client]) -> None:
        """Initialize the store.

        Args:
            client: Service-role client used for table access and token checks.
            auth_client_factory: Builds a fresh anon-key client per sign in/up.
        """
        self._client = client
        self._auth_client_factory = auth_client_factory

    @classmethod
    def from_config(cls, config: SupabaseConfig) -> "SupabaseStore":
        return cls(
            client=create_client(config.url, config.service_role_key),
            auth_client_factory=lambda: create_client(config.url, config.anon_key),
        )

    # --- Auth ---

    def sign_up(self, email: str, password: str) -> AuthSession:
        """Register a user. The token is None until the email is confirmed."""
        try:
            res = self._auth_client_factory().auth.sign_up(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthenticationError(str(e)) from e

        if res.user is None:
            raise AuthenticationError("Sign up failed")
        token = res.session.access_token if res.session else None
        logger.info(f"Signed up user {res.user.id}")
        return AuthSession(user=AuthUser(id=str(res.user.id), email=res.user.email), access_token=token)

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            res = self._auth_client_factory().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthenticationError(str(e)) from e

        if res.user is None or res.session is None:
            raise AuthenticationError("Invalid login credentials")
        return AuthSession(
            user=AuthUser(id=str(res.user.id), email=res.user.email),
            access_token=res.session.access_token,
        )

    def sign_out(self, access_token: str) -> None:
        """Revoke the sessions behind an access token."""
        try:
            self._client.auth.admin.sign_out(access_token)
        except Exception as e:
            raise AuthenticationError(str(e)) from e

    def get_user(self, access_token: str) -> AuthUser:
        """Resolve an access token to its user.

        Raises:
            AuthenticationError: If the token is invalid or expired.
        """
        try:
            res = self._client.auth.get_user(access_token)
        except Exception as e:
            raise AuthenticationError(str(e)) from e

        if res is None or res.user is None:
            raise AuthenticationError("Invalid access token")
        return AuthUser(id=str(res.user.id), email=res.user.email)

    # --- Documents ---

    def list_documents(self, user_id: str) -> list[Document]:
        """Return all documents for a user, newest first."""
        try:
            r = (
                self._client.table(DOCUMENTS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to list documents: {e}") from e
        return [_to_document(row) for row in r.data or []]

    def get_documents(self, user_id: str, document_ids: Iterable[str]) -> list[Document]:
        """Return the user's documents among the given ids."""
        ids = list(dict.fromkeys(document_ids))
        if not ids:
            return []
        try:
            r = (
                self._client.table(DOCUMENTS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .in_("id", ids)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to load documents: {e}") from e
        return [_to_document(row) for row in r.data or []]

    def create_document(
        self,
        user_id: str,
        name: str,
        media_type: str,
        size: int,
        summary: str,
    ) -> Document:
        """Insert a document record and return it."""
        try:
            r = (
                self._client.table(DOCUMENTS_TABLE)
                .insert({
                    "user_id": user_id,
                    "file_name": name,
                    "file_type": media_type,
                    "file_size": size,
                    "extracted_info": summary,
                    "created_at": _now(),
                })
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to save document: {e}") from e
        if not r.data:
            raise StorageError("Failed to save document: no row returned")
        logger.info(f"Stored document {name} for user {user_id}")
        return _to_document(r.data[0])

    def delete_document(self, user_id: str, document_id: str) -> None:
        try:
            r = (
                self._client.table(DOCUMENTS_TABLE)
                .delete()
                .eq("id", document_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to delete document: {e}") from e
        if not r.data:
            raise NotFoundError(f"Document {document_id} not found")

    # --- Chats ---

    def list_chats(self, user_id: str) -> list[ChatSummary]:
        """Return all chats for a user, most recently updated first."""
        try:
            r = (
                self._client.table(CHATS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("updated_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to list chats: {e}") from e
        return [_to_summary(row) for row in r.data or []]

    def _get_chat_row(self, user_id: str, chat_id: str) -> dict:
        try:
            r = (
                self._client.table(CHATS_TABLE)
                .select("*")
                .eq("id", chat_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to load chat: {e}") from e
        if not r.data:
            raise NotFoundError(f"Chat {chat_id} not found")
        return r.data[0]

    def load_chat(self, user_id: str, chat_id: str) -> ChatDetail:
        """Load a chat's transcript in order and its context document ids.

        Raises:
            NotFoundError: If the chat does not exist for this user.
        """
        row = self._get_chat_row(user_id, chat_id)
        try:
            messages = (
                self._client.table(MESSAGES_TABLE)
                .select("*")
                .eq("chat_id", chat_id)
                .order("created_at")
                .execute()
            )
            files = (
                self._client.table(CHAT_FILES_TABLE)
                .select("file_id")
                .eq("chat_id", chat_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to load chat: {e}") from e

        return ChatDetail(
            id=str(row["id"]),
            title=row.get("title") or DEFAULT_TITLE,
            turns=[ChatTurn(role=m["role"], content=m["content"]) for m in messages.data or []],
            document_ids=[str(f["file_id"]) for f in files.data or []],
        )

    def create_chat(
        self,
        user_id: str,
        turns: list[ChatTurn],
        document_ids: Iterable[str] = (),
    ) -> str:
        """Create an empty chat titled after the first user turn.

        The chat is linked to the given documents. Messages are written
        separately by replace_messages.

        Returns:
            The new chat id.
        """
        try:
            r = (
                self._client.table(CHATS_TABLE)
                .insert({
                    "user_id": user_id,
                    "title": chat_title(turns),
                    "updated_at": _now(),
                })
                .execute()
            )
            if not r.data:
                raise StorageError("Failed to create chat: no row returned")
            chat_id = str(r.data[0]["id"])

            links = [{"chat_id": chat_id, "file_id": doc_id} for doc_id in document_ids]
            if links:
                self._client.table(CHAT_FILES_TABLE).insert(links).execute()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create chat: {e}") from e

        logger.info(f"Created chat {chat_id}")
        return chat_id

    def replace_messages(self, user_id: str, chat_id: str, turns: list[ChatTurn]) -> None:
        """Replace a chat's stored messages with the given transcript.

        The chat's timestamp is bumped, then all messages are deleted and
        reinserted in order.

        Raises:
            NotFoundError: If the chat does not belong to the user.
            StorageError: If the write fails.
        """
        self._get_chat_row(user_id, chat_id)
        now = datetime.now(UTC)
        try:
            (
                self._client.table(CHATS_TABLE)
                .update({"updated_at": now.isoformat()})
                .eq("id", chat_id)
                .execute()
            )
            self._client.table(MESSAGES_TABLE).delete().eq("chat_id", chat_id).execute()

            # Distinct timestamps keep the transcript order on reload
            rows = [
                {
                    "chat_id": chat_id,
                    "role": turn.role,
                    "content": turn.content,
                    "created_at": (now + timedelta(microseconds=i)).isoformat(timespec="microseconds"),
                }
                for i, turn in enumerate(turns)
            ]
            if rows:
                self._client.table(MESSAGES_TABLE).insert(rows).execute()
        except Exception as e:
            raise StorageError(f"Failed to save chat: {e}") from e

        logger.debug(f"Saved {len(turns)} messages to chat {chat_id}")

    def save_transcript(
        self,
        user_id: str,
        chat_id: str | None,
        turns: list[ChatTurn],
        document_ids: Iterable[str] = (),
    ) -> str:
        """Persist a full transcript, replacing whatever was stored before.

        A new chat is created when chat_id is None. The messages are then
        replaced.

        Returns:
            The chat id.
        """
        if chat_id is None:
            chat_id = self.create_chat(user_id, turns, document_ids)
        self.replace_messages(user_id, chat_id, turns)
        return chat_id

    def delete_chat(self, user_id: str, chat_id: str) -> None:
        self._get_chat_row(user_id, chat_id)
        try:
            self._client.table(MESSAGES_TABLE).delete().eq("chat_id", chat_id).execute()
            self._client.table(CHAT_FILES_TABLE).delete().eq("chat_id", chat_id).execute()
            self._client.table(CHATS_TABLE).delete().eq("id", chat_id).eq("user_id", user_id).execute()
        except Exception as e:
            raise StorageError(f"Failed to delete chat: {e}") from e
        logger.info(f"Deleted chat {chat_id}")


# Module-level singleton instance
_store: SupabaseStore | None = None


def get_store() -> SupabaseStore:
    """Get or create the global Supabase store.

    Raises:
        ConfigurationError: If Supabase credentials are missing.
    """
    global _store
    if _store is None:
        _store = SupabaseStore.from_config(get_supabase_config())
    return _store
