"""
Authentication API Routes for Bookshelf.

Handles:
- User registration (creates the user's first collection and logs in)
- Login / logout with a server-side session cookie
- Current user retrieval
"""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from loguru import logger

from bookshelf.api.dependencies import (
    Settings,
    get_settings,
    get_credential_store,
    get_current_identity,
    get_session_token,
)
from bookshelf.api.schemas import (
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    SuccessResponse,
    UserResponse,
)
from bookshelf.catalogue.query import Identity
from bookshelf.storage.accounts import CredentialStore, identity_of

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_response(identity: Identity) -> UserResponse:
    return UserResponse(
        id=identity.user_id,
        username=identity.username,
        is_admin=identity.is_admin,
    )


async def _start_session(
    response: Response,
    store: CredentialStore,
    user_id: int,
    settings: Settings,
) -> None:
    """Persist a session and hand its token to the browser."""
    ttl = timedelta(hours=settings.session_ttl_hours)
    token = await store.create_session(user_id, ttl)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


# --- Endpoints ---

@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid username or password"},
        409: {"model": ErrorResponse, "description": "Username already exists"},
    },
)
async def register(
    body: RegisterRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    """Register a new user together with their default collection."""
    user = await store.register(
        body.username,
        body.password,
        settings.default_collection_name,
    )
    await _start_session(response, store, user.id, settings)
    return _user_response(identity_of(user))


@router.post(
    "/login",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
async def login(
    body: LoginRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    """Check credentials and start a session."""
    identity = await store.authenticate(body.username, body.password)
    await _start_session(response, store, identity.user_id, settings)
    logger.info(f"User {identity.username} logged in")
    return _user_response(identity)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    await store.destroy_session(token)
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    return SuccessResponse()


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse, "description": "Not logged in"}},
)
async def read_current_user(identity: Identity = Depends(get_current_identity)):
    """Get the logged-in user."""
    return _user_response(identity)
