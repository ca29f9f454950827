"""
Shared route dependencies: session resolution and access levels.

    get_optional_session  -> AuthSession | None (no Authorization header)
    require_session       -> any live session (guest or user)
    require_user          -> signed-in session
    require_admin         -> signed-in administrator profile
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.models import AuthSession, Profile
from storefront.services.sessions import SessionError, resolve_session
from storefront.services.storage import BaseGuestStorage, get_guest_storage

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[AuthSession]:
    if credentials is None:
        return None
    try:
        return await resolve_session(db, credentials.credentials)
    except SessionError as e:
        raise _unauthorized(str(e))


async def require_session(
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> AuthSession:
    if session is None:
        raise _unauthorized("Start a guest session or log in first")
    return session


async def require_user(
    session: AuthSession = Depends(require_session),
) -> AuthSession:
    if session.is_guest:
        raise _unauthorized("Login required")
    return session


async def get_current_profile(
    session: AuthSession = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    profile = await db.get(Profile, session.user_id)
    if profile is None:
        raise _unauthorized("Account no longer exists")
    return profile


async def require_admin(
    profile: Profile = Depends(get_current_profile),
) -> Profile:
    if not profile.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return profile


def get_storage() -> BaseGuestStorage:
    return get_guest_storage()
