"""HTTP client the UI uses to talk to the DocChat API."""

import json
import os
from collections.abc import Callable
from typing import Any

import httpx

from docchat.models.schemas import (
    AuthResponse,
    ChatDetail,
    ChatSummary,
    DocumentEntry,
    DocumentListResponse,
    SelectionResponse,
)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

REQUEST_TIMEOUT = 30.0
# Summaries and replies can take a while
LLM_TIMEOUT = 120.0


class ApiError(Exception):
    """Raised when the API answers with an error status or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


def _detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, list):
        # FastAPI validation errors
        detail = "; ".join(str(item.get("msg", item)) for item in detail)
    return detail or f"HTTP {response.status_code}"


class DocChatClient:
    """Thin async wrapper over the REST and SSE endpoints.

    Args:
        base_url: API root.
        token: Bearer token of the signed-in user.
        transport: Optional httpx transport, e.g. ASGITransport in tests.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self._transport = transport

    def _client(self, timeout: float = REQUEST_TIMEOUT) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        timeout: float = REQUEST_TIMEOUT,
        **kwargs: Any,
    ) -> httpx.Response:
        async with self._client(timeout) as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.RequestError as e:
                raise ApiError(f"Connection failed: {e}") from e
        if response.is_error:
            raise ApiError(_detail(response), response.status_code)
        return response

    # --- Auth ---

    async def sign_in(self, email: str, password: str) -> AuthResponse:
        response = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        result = AuthResponse.model_validate(response.json())
        self.token = result.access_token
        return result

    async def sign_up(self, email: str, password: str) -> AuthResponse:
        response = await self._request(
            "POST", "/auth/signup", json={"email": email, "password": password}
        )
        result = AuthResponse.model_validate(response.json())
        if result.access_token:
            self.token = result.access_token
        return result

    async def sign_out(self) -> None:
        if self.token:
            await self._request("POST", "/auth/logout")
        self.token = None

    # --- Documents ---

    async def list_documents(self) -> DocumentListResponse:
        response = await self._request("GET", "/documents")
        return DocumentListResponse.model_validate(response.json())

    async def upload_document(self, filename: str, content: bytes, content_type: str) -> DocumentEntry:
        response = await self._request(
            "POST",
            "/documents",
            timeout=LLM_TIMEOUT,
            files={"file": (filename, content, content_type)},
        )
        return DocumentEntry.model_validate(response.json()["document"])

    async def delete_document(self, document_id: str) -> None:
        await self._request("DELETE", f"/documents/{document_id}")

    async def toggle_selection(self, document_id: str, selected_ids: list[str]) -> SelectionResponse:
        response = await self._request(
            "POST",
            "/context/selection",
            json={"document_id": document_id, "selected_ids": selected_ids},
        )
        return SelectionResponse.model_validate(response.json())

    # --- Chats ---

    async def list_chats(self) -> list[ChatSummary]:
        response = await self._request("GET", "/chats")
        return [ChatSummary.model_validate(item) for item in response.json()]

    async def get_chat(self, chat_id: str) -> ChatDetail:
        response = await self._request("GET", f"/chats/{chat_id}")
        return ChatDetail.model_validate(response.json())

    async def delete_chat(self, chat_id: str) -> None:
        await self._request("DELETE", f"/chats/{chat_id}")

    async def stream_chat(
        self,
        message: str,
        chat_id: str | None,
        document_ids: list[str],
        on_chunk: Callable[[str], None],
        on_status: Callable[[str], None],
        on_complete: Callable[[str | None, str | None], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Consume the SSE stream from /chat/stream.

        Exactly one of on_complete or on_error is called. on_complete gets the
        chat id and an optional warning (for instance a failed save).
        """
        payload = {"message": message, "chat_id": chat_id, "document_ids": document_ids}
        async with self._client(LLM_TIMEOUT) as client:
            try:
                async with client.stream(
                    "POST",
                    "/chat/stream",
                    json=payload,
                    headers={"Accept": "text/event-stream"},
                ) as response:
                    if response.is_error:
                        await response.aread()
                        on_error(_detail(response))
                        return
                    async for line in response.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        data = json.loads(line[6:])
                        if data.get("done"):
                            if data.get("status") == "error":
                                on_error(data.get("error") or "Unknown error")
                            else:
                                on_complete(data.get("chat_id"), data.get("error"))
                            return
                        if status := data.get("status"):
                            on_status(status)
                        if content := data.get("content"):
                            on_chunk(content)
                on_error("Stream ended unexpectedly")
            except httpx.RequestError as e:
                on_error(f"Connection failed: {e}")
