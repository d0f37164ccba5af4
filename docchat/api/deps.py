"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docchat.agent.gemini_agent import AgentService, get_agent_service
from docchat.chat.session import ConversationManager, get_conversation_manager
from docchat.context.config import ContextConfig, get_context_config
from docchat.storage.supabase_store import (
    AuthenticationError,
    AuthUser,
    SupabaseStore,
    get_store,
)

bearer_scheme = HTTPBearer(auto_error=False)

Store = Annotated[SupabaseStore, Depends(get_store)]
Agents = Annotated[AgentService, Depends(get_agent_service)]
Manager = Annotated[ConversationManager, Depends(get_conversation_manager)]
Budget = Annotated[ContextConfig, Depends(get_context_config)]


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Extract the bearer token or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    store: Store,
) -> AuthUser:
    """Resolve the bearer token to a Supabase user.

    Raises:
        HTTPException: 401 if the token is rejected.
    """
    try:
        return store.get_user(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
