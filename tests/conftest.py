"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - supabase_client: In-memory Supabase stand-in
    - store: SupabaseStore over the fake client
    - user / auth_headers: A signed-in user and their bearer header
    - fake_agent: Scripted Gemini replies
    - manager: ConversationManager wired to the fakes
    - api_app / async_client: FastAPI app with dependency overrides and an
      HTTPX client for it

Budget is 100 tokens so small summaries exercise the limit.
"""

import io
from collections.abc import AsyncGenerator, Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pypdf import PdfWriter

from docchat.agent.gemini_agent import get_agent_service
from docchat.api.app import create_app
from docchat.chat.session import ConversationManager, get_conversation_manager
from docchat.context.config import ContextConfig, get_context_config
from docchat.models.schemas import Document
from docchat.storage.supabase_store import AuthUser, SupabaseStore, get_store
from tests.fakes import FakeAgentService, FakeSupabaseClient

TEST_TOKEN_LIMIT = 100
USER_TOKEN = "token-alice"


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def store(supabase_client: FakeSupabaseClient) -> SupabaseStore:
    return SupabaseStore(client=supabase_client, auth_client_factory=lambda: supabase_client)


@pytest.fixture
def user(supabase_client: FakeSupabaseClient) -> AuthUser:
    """Register a user who is signed in with USER_TOKEN."""
    fake_user = supabase_client.auth.add_user("alice@example.com", "secret123", token=USER_TOKEN)
    return AuthUser(id=fake_user.id, email=fake_user.email)


@pytest.fixture
def auth_headers(user: AuthUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {USER_TOKEN}"}


@pytest.fixture
def add_document(store: SupabaseStore, user: AuthUser) -> Callable[..., Document]:
    """Store a document whose summary costs `tokens` estimated tokens."""

    def _add(name: str, tokens: int, media_type: str = "text/plain") -> Document:
        return store.create_document(user.id, name, media_type, 1024, "x" * (tokens * 4))

    return _add


@pytest.fixture
def fake_agent() -> FakeAgentService:
    return FakeAgentService()


@pytest.fixture
def manager(fake_agent: FakeAgentService, store: SupabaseStore) -> ConversationManager:
    return ConversationManager(agent=fake_agent, store=store)


@pytest.fixture
def api_app(
    store: SupabaseStore,
    fake_agent: FakeAgentService,
    manager: ConversationManager,
) -> FastAPI:
    """FastAPI app with Supabase, Gemini and budget settings replaced."""
    application = create_app()
    application.dependency_overrides[get_store] = lambda: store
    application.dependency_overrides[get_agent_service] = lambda: fake_agent
    application.dependency_overrides[get_conversation_manager] = lambda: manager
    application.dependency_overrides[get_context_config] = lambda: ContextConfig(
        token_limit=TEST_TOKEN_LIMIT
    )
    return application


@pytest.fixture
async def async_client(api_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def pdf_bytes() -> bytes:
    """A valid two-page blank PDF."""
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
