"""Chat endpoints: SSE streaming replies and stored chat history."""

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from docchat.api.deps import Budget, CurrentUser, Manager, Store
from docchat.chat.session import Conversation, ConversationBusyError
from docchat.context.budget import total_cost
from docchat.models.schemas import ChatDetail, ChatRequest, ChatSummary, StreamChunk
from docchat.storage.supabase_store import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _sse(chunk: StreamChunk) -> str:
    return f"data: {chunk.model_dump_json()}\n\n"


# Sends still running in the background, kept referenced until they finish
_relays: set[asyncio.Task] = set()


def _relay(stream: AsyncGenerator[StreamChunk]) -> asyncio.Queue[StreamChunk | None]:
    """Drive a send in its own task and hand its chunks over a queue.

    A client that disconnects only stops reading. The send keeps going to
    the end and saves the transcript. None marks the end of the stream.
    """
    queue: asyncio.Queue[StreamChunk | None] = asyncio.Queue()

    async def pump() -> None:
        try:
            async for chunk in stream:
                queue.put_nowait(chunk)
        except Exception as e:
            logger.error(f"Chat stream failed: {e}")
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(pump())
    _relays.add(task)
    task.add_done_callback(_relays.discard)
    return queue


@router.post("/chat/stream")
async def chat_stream(
    request: ChatRequest,
    user: CurrentUser,
    store: Store,
    manager: Manager,
    budget: Budget,
) -> StreamingResponse:
    """Send a message and stream the reply as Server-Sent Events.

    Each event is a StreamChunk. The last one has done=true and carries the
    chat id, so the client can continue the same chat.

    Raises:
        400: The selected documents exceed the token limit.
        404: chat_id does not exist for this user.
        409: A reply for this chat is still streaming.
    """
    turns = []
    if request.chat_id:
        try:
            detail = await run_in_threadpool(store.load_chat, user.id, request.chat_id)
        except NotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
        turns = detail.turns

    documents = await run_in_threadpool(store.get_documents, user.id, request.document_ids)
    selection = frozenset(doc.id for doc in documents)
    if total_cost(selection, documents) > budget.token_limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Selected documents exceed the {budget.token_limit:,} token limit",
        )

    conversation = Conversation(
        user_id=user.id,
        chat_id=request.chat_id,
        turns=turns,
        selection=selection,
    )
    stream = manager.send(conversation, request.message, documents)

    try:
        first = await anext(stream)
    except ConversationBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    queue = _relay(stream)

    async def event_stream() -> AsyncGenerator[str]:
        yield _sse(first)
        while (chunk := await queue.get()) is not None:
            yield _sse(chunk)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/chats", response_model=list[ChatSummary])
def list_chats(user: CurrentUser, store: Store) -> list[ChatSummary]:
    """List the user's chats, most recently updated first."""
    return store.list_chats(user.id)


@router.get("/chats/{chat_id}", response_model=ChatDetail)
def get_chat(chat_id: str, user: CurrentUser, store: Store) -> ChatDetail:
    try:
        return store.load_chat(user.id, chat_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/chats/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chat(chat_id: str, user: CurrentUser, store: Store) -> None:
    try:
        store.delete_chat(user.id, chat_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
