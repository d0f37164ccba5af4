"""Unit tests for the UI's API client.

The client is pointed at the FastAPI app through ASGITransport, so requests
exercise the real routes with the fake Supabase and Gemini services.
"""

from collections.abc import Callable

import pytest
import pytest_check as check
from fastapi import FastAPI
from httpx import ASGITransport

from docchat.models.schemas import Document
from docchat.storage.supabase_store import AuthUser
from docchat.ui.api_client import ApiError, DocChatClient
from tests.conftest import USER_TOKEN
from tests.fakes import FakeAgentService


class StreamRecorder:
    """Collects the callbacks fired by stream_chat."""

    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.statuses: list[str] = []
        self.completed: list[tuple[str | None, str | None]] = []
        self.errors: list[str] = []

    def callbacks(self) -> dict[str, Callable]:
        return {
            "on_chunk": self.chunks.append,
            "on_status": self.statuses.append,
            "on_complete": lambda chat_id, warning: self.completed.append((chat_id, warning)),
            "on_error": self.errors.append,
        }


@pytest.fixture
def client(api_app: FastAPI, user: AuthUser) -> DocChatClient:
    return DocChatClient(
        base_url="http://test",
        token=USER_TOKEN,
        transport=ASGITransport(app=api_app),
    )


class TestAuthCalls:
    async def test_sign_in_stores_token(self, api_app: FastAPI, user: AuthUser) -> None:
        """A successful sign in keeps the token for later calls."""
        client = DocChatClient(base_url="http://test", transport=ASGITransport(app=api_app))

        result = await client.sign_in("alice@example.com", "secret123")

        check.equal(client.token, result.access_token)
        check.equal(result.user_id, user.id)
        documents = await client.list_documents()
        check.equal(documents.documents, [])

    async def test_wrong_password_raises(self, api_app: FastAPI, user: AuthUser) -> None:
        client = DocChatClient(base_url="http://test", transport=ASGITransport(app=api_app))

        with pytest.raises(ApiError) as exc_info:
            await client.sign_in("alice@example.com", "not-the-password")

        check.is_true(exc_info.value.is_unauthorized)
        check.is_none(client.token)

    async def test_sign_out_clears_token(self, client: DocChatClient) -> None:
        await client.sign_out()

        check.is_none(client.token)

    async def test_unauthenticated_call(self, api_app: FastAPI) -> None:
        client = DocChatClient(base_url="http://test", transport=ASGITransport(app=api_app))

        with pytest.raises(ApiError) as exc_info:
            await client.list_chats()

        assert exc_info.value.status_code == 401


class TestDocumentCalls:
    async def test_upload_list_and_delete(self, client: DocChatClient) -> None:
        entry = await client.upload_document("notes.txt", b"Meeting notes", "text/plain")

        check.equal(entry.name, "notes.txt")
        check.greater(entry.tokens, 0)
        listing = await client.list_documents()
        check.equal([d.id for d in listing.documents], [entry.id])
        check.equal(listing.token_limit, 100)

        await client.delete_document(entry.id)
        check.equal((await client.list_documents()).documents, [])

    async def test_error_detail_becomes_message(self, client: DocChatClient) -> None:
        """The API's error detail is the exception message."""
        with pytest.raises(ApiError) as exc_info:
            await client.upload_document("empty.txt", b"", "text/plain")

        check.equal(exc_info.value.status_code, 400)
        check.is_in("Empty file", str(exc_info.value))

    async def test_toggle_selection_rejected(
        self, client: DocChatClient, add_document: Callable[..., Document]
    ) -> None:
        a = add_document("a.txt", 60)
        b = add_document("b.txt", 50)

        result = await client.toggle_selection(b.id, [a.id])

        check.is_false(result.accepted)
        check.equal(result.selected_ids, [a.id])
        check.is_in("100 token limit", result.message)


class TestStreamChat:
    """Tests for consuming the SSE stream."""

    async def test_successful_stream(self, client: DocChatClient) -> None:
        recorder = StreamRecorder()

        await client.stream_chat("Hi", None, [], **recorder.callbacks())

        check.equal(recorder.chunks, ["Hel", "lo", " world"])
        check.equal(recorder.statuses[0], "sending")
        check.equal(len(recorder.completed), 1)
        check.is_not_none(recorder.completed[0][0])
        check.is_none(recorder.completed[0][1])
        check.equal(recorder.errors, [])

    async def test_stream_continues_chat(self, client: DocChatClient) -> None:
        recorder = StreamRecorder()
        await client.stream_chat("First", None, [], **recorder.callbacks())
        chat_id = recorder.completed[0][0]

        await client.stream_chat("Second", chat_id, [], **recorder.callbacks())

        check.equal(recorder.completed[1][0], chat_id)
        chat = await client.get_chat(chat_id)
        check.equal([t.content for t in chat.turns], ["First", "Hello world", "Second", "Hello world"])

    async def test_model_failure_reported_once(
        self, client: DocChatClient, fake_agent: FakeAgentService
    ) -> None:
        fake_agent.error = "quota exceeded"
        recorder = StreamRecorder()

        await client.stream_chat("Hi", None, [], **recorder.callbacks())

        check.equal(recorder.errors, ["quota exceeded"])
        check.equal(recorder.completed, [])

    async def test_http_error_reported(self, client: DocChatClient) -> None:
        """A rejected request calls on_error with the API's detail."""
        recorder = StreamRecorder()

        await client.stream_chat("Hi", "no-such-chat", [], **recorder.callbacks())

        check.equal(len(recorder.errors), 1)
        check.is_in("not found", recorder.errors[0])
        check.equal(recorder.chunks, [])
