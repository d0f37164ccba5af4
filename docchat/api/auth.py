"""Sign up, sign in and sign out through Supabase auth."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from docchat.api.deps import CurrentUser, Store, get_bearer_token
from docchat.models.schemas import AuthRequest, AuthResponse
from docchat.storage.supabase_store import AuthenticationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse)
def sign_up(credentials: AuthRequest, store: Store) -> AuthResponse:
    """Create an account. Supabase may require email confirmation first."""
    try:
        session = store.sign_up(credentials.email, credentials.password)
    except AuthenticationError as e:
        logger.warning(f"Sign up failed for {credentials.email}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    message = (
        "Sign up successful!"
        if session.access_token
        else "Sign up successful! Check your email for confirmation."
    )
    return AuthResponse(
        user_id=session.user.id,
        email=session.user.email,
        access_token=session.access_token,
        message=message,
    )


@router.post("/login", response_model=AuthResponse)
def sign_in(credentials: AuthRequest, store: Store) -> AuthResponse:
    try:
        session = store.sign_in(credentials.email, credentials.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        ) from e

    return AuthResponse(
        user_id=session.user.id,
        email=session.user.email,
        access_token=session.access_token,
        message="Login successful!",
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(store: Store, token: str = Depends(get_bearer_token)) -> None:
    try:
        store.sign_out(token)
    except AuthenticationError as e:
        # The token is unusable either way
        logger.warning(f"Sign out failed: {e}")


@router.get("/me", response_model=AuthResponse)
def who_am_i(user: CurrentUser) -> AuthResponse:
    """Return the user behind the bearer token."""
    return AuthResponse(user_id=user.id, email=user.email, message="Authenticated")
