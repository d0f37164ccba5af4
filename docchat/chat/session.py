"""Conversation send state machine.

A send moves a conversation through ``idle -> sending -> streaming -> idle``:

1. The user turn is appended and the prompt is built from the selected
   document summaries plus the question.
2. Reply deltas are appended, in arrival order, to a single assistant turn
   that grows in place. Every delta is yielded before the next one is read.
3. The full transcript is saved, replacing what was stored before. A new
   chat is created first, so its id is kept even if the messages fail to save.

On failure the partial assistant turn is dropped, exactly one
``Error: ...`` assistant turn is appended and the conversation returns to
idle. That transcript is saved too.

Only one send per conversation may be in flight.
"""

import logging
from collections.abc import AsyncGenerator, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from docchat.agent.gemini_agent import get_agent_service
from docchat.models.schemas import ChatTurn, Document, StreamChunk, StreamStatus
from docchat.storage.supabase_store import get_store

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "Context from uploaded files:\n\n"


class SendState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


class ConversationBusyError(Exception):
    """Raised when a send starts while another is still in flight."""

    pass


class EmptyMessageError(ValueError):
    """Raised when the user's text is empty or whitespace."""

    pass


class ReplyStreamer(Protocol):
    def stream_response(self, prompt: str) -> AsyncGenerator[str]: ...


class TranscriptStore(Protocol):
    def create_chat(
        self,
        user_id: str,
        turns: list[ChatTurn],
        document_ids: Iterable[str] = (),
    ) -> str: ...

    def replace_messages(self, user_id: str, chat_id: str, turns: list[ChatTurn]) -> None: ...


@dataclass
class Conversation:
    """Session state for one chat.

    Attributes:
        user_id: Owner of the chat.
        chat_id: Stored chat id, None until the first save.
        turns: Transcript in order.
        selection: Ids of documents used as context.
        state: Current send state.
    """

    user_id: str
    chat_id: str | None = None
    turns: list[ChatTurn] = field(default_factory=list)
    selection: frozenset[str] = frozenset()
    state: SendState = SendState.IDLE

    @property
    def is_busy(self) -> bool:
        return self.state is not SendState.IDLE


def build_prompt(text: str, documents: Sequence[Document], selection: Iterable[str]) -> str:
    """Build the single request text for a user turn.

    Each selected document contributes its name and summary, in the order
    given. Documents outside the selection are left out.
    """
    selected = set(selection)
    context = ""
    chosen = [doc for doc in documents if doc.id in selected]
    if chosen:
        context = CONTEXT_HEADER
        for doc in chosen:
            context += f"File: {doc.name}\n"
            context += f"Information: {doc.summary}\n\n"
    return context + "\nUser question: " + text


class ConversationManager:
    """Runs sends for conversations and keeps them one at a time."""

    def __init__(self, agent: ReplyStreamer, store: TranscriptStore) -> None:
        self._agent = agent
        self._store = store
        self._in_flight: set[str] = set()

    @staticmethod
    def _key(conversation: Conversation) -> str:
        return conversation.chat_id or f"unsaved-{id(conversation)}"

    def is_sending(self, conversation: Conversation) -> bool:
        return conversation.is_busy or self._key(conversation) in self._in_flight

    async def send(
        self,
        conversation: Conversation,
        text: str,
        documents: Sequence[Document],
    ) -> AsyncGenerator[StreamChunk]:
        """Send a user turn and stream the reply.

        Args:
            conversation: The conversation to extend. Mutated in place.
            text: The user's message.
            documents: Candidate context documents; only selected ones are used.

        Yields:
            A ``sending`` chunk, one ``streaming`` chunk per delta, then a
            final ``done`` chunk carrying the chat id, and the error if any.

        Raises:
            EmptyMessageError: If text is blank. Nothing changes.
            ConversationBusyError: If a send is already in flight.
        """
        text = text.strip()
        if not text:
            raise EmptyMessageError("Message is empty")
        if self.is_sending(conversation):
            raise ConversationBusyError("A reply is still being generated for this chat")

        key = self._key(conversation)
        self._in_flight.add(key)
        try:
            conversation.state = SendState.SENDING
            conversation.turns.append(ChatTurn(role="user", content=text))
            yield StreamChunk(content="", done=False, status=StreamStatus.SENDING)

            error: str | None = None
            reply: ChatTurn | None = None
            try:
                prompt = build_prompt(text, documents, conversation.selection)
                async for delta in self._agent.stream_response(prompt):
                    if reply is None:
                        conversation.state = SendState.STREAMING
                        reply = ChatTurn(role="assistant", content="")
                        conversation.turns.append(reply)
                    reply.content += delta
                    yield StreamChunk(content=delta, done=False, status=StreamStatus.STREAMING)
                if reply is None:
                    conversation.turns.append(ChatTurn(role="assistant", content=""))
            except Exception as e:
                logger.error(f"Send failed for chat {conversation.chat_id}: {e}")
                # The partial reply is always the last turn
                if reply is not None and conversation.turns and conversation.turns[-1] is reply:
                    conversation.turns.pop()
                error = str(e) or e.__class__.__name__
                conversation.turns.append(ChatTurn(role="assistant", content=f"Error: {error}"))

            save_error: str | None = None
            try:
                # Keep the new id even if the message write below fails
                if conversation.chat_id is None:
                    conversation.chat_id = await run_in_threadpool(
                        self._store.create_chat,
                        conversation.user_id,
                        list(conversation.turns),
                        sorted(conversation.selection),
                    )
                    self._in_flight.add(conversation.chat_id)
                await run_in_threadpool(
                    self._store.replace_messages,
                    conversation.user_id,
                    conversation.chat_id,
                    list(conversation.turns),
                )
            except Exception as e:
                logger.error(f"Failed to save chat {conversation.chat_id}: {e}")
                save_error = f"Failed to save chat: {e}"

            conversation.state = SendState.IDLE
            if error is not None:
                yield StreamChunk(
                    content="",
                    done=True,
                    status=StreamStatus.ERROR,
                    error=error,
                    chat_id=conversation.chat_id,
                )
            else:
                yield StreamChunk(
                    content="",
                    done=True,
                    status=StreamStatus.COMPLETE,
                    error=save_error,
                    chat_id=conversation.chat_id,
                )
        finally:
            conversation.state = SendState.IDLE
            self._in_flight.discard(key)
            if conversation.chat_id is not None:
                self._in_flight.discard(conversation.chat_id)


# Module-level singleton instance
_manager: ConversationManager | None = None


def get_conversation_manager() -> ConversationManager:
    """Get or create the global conversation manager.

    Raises:
        ConfigurationError: If Gemini or Supabase settings are missing.
    """
    global _manager
    if _manager is None:
        _manager = ConversationManager(agent=get_agent_service(), store=get_store())
    return _manager
