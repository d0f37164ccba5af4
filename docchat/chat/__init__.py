"""Conversation session management.

Builds the context prompt from selected documents, streams the reply into a
growing assistant turn, and saves the full transcript afterwards.
"""

from docchat.chat.session import (
    Conversation,
    ConversationBusyError,
    ConversationManager,
    EmptyMessageError,
    SendState,
    build_prompt,
    get_conversation_manager,
)

__all__ = [
    "Conversation",
    "ConversationBusyError",
    "ConversationManager",
    "EmptyMessageError",
    "SendState",
    "build_prompt",
    "get_conversation_manager",
]
