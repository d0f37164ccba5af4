"""Supabase-backed persistence and auth.

Stores uploaded document summaries, chats, chat-document links and chat
messages. Transcripts are saved by full replacement.
"""

from docchat.storage.config import SupabaseConfig, get_supabase_config
from docchat.storage.supabase_store import (
    AuthenticationError,
    AuthSession,
    AuthUser,
    NotFoundError,
    StorageError,
    SupabaseStore,
    chat_title,
    get_store,
)

__all__ = [
    "AuthSession",
    "AuthUser",
    "AuthenticationError",
    "NotFoundError",
    "StorageError",
    "SupabaseConfig",
    "SupabaseStore",
    "chat_title",
    "get_store",
    "get_supabase_config",
]
