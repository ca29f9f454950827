"""
Session, sign-up/login and profile endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import AuthSession, Profile
from storefront.routes.deps import get_current_profile, get_storage, require_session
from storefront.schemas import (
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    SessionResponse,
    SignupRequest,
)
from storefront.services import sessions
from storefront.services.storage import BaseGuestStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Sessions"])


def _session_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        token=session.token,
        kind=session.kind,
        user_id=session.user_id,
        chat_session_id=session.chat_session_id,
        expires_at=session.expires_at,
    )


@router.post(
    "/sessions/guest",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Guest Session",
)
async def start_guest_session(
    db: AsyncSession = Depends(get_db),
    storage: BaseGuestStorage = Depends(get_storage),
) -> SessionResponse:
    """
    Open a guest session; its token scopes the guest cart and chat.

    Guest sessions that expired without being closed are pruned first.
    """
    await sessions.prune_expired_guest_sessions(db, storage)
    session = await sessions.open_guest_session(db)
    return _session_response(session)


@router.post(
    "/auth/signup",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Account",
)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    try:
        _, session = await sessions.signup(db, request.email, request.password, request.full_name)
    except sessions.SessionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _session_response(session)


@router.post("/auth/login", response_model=SessionResponse, summary="Log In")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """
    Open a signed-in session.

    A guest session held by the same client stays open; its cart is not
    carried over.
    """
    try:
        session = await sessions.login(db, request.email, request.password)
    except sessions.SessionError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return _session_response(session)


@router.get("/sessions/current", response_model=SessionResponse)
async def current_session(session: AuthSession = Depends(require_session)) -> SessionResponse:
    return _session_response(session)


@router.delete("/sessions/current", summary="End Session")
async def end_session(
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    storage: BaseGuestStorage = Depends(get_storage),
) -> dict[str, bool]:
    await sessions.close_session(db, session, storage)
    return {"success": True}


@router.get("/profile", response_model=ProfileResponse, tags=["Profile"])
async def get_profile(profile: Profile = Depends(get_current_profile)) -> Profile:
    return profile


@router.put("/profile", response_model=ProfileResponse, tags=["Profile"])
async def update_profile(
    update: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Save name, address and phone; the storefront pre-fills checkout from them."""
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    await db.commit()
    logger.info(f"Profile #{profile.id} updated")
    return profile
