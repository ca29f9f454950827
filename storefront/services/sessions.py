"""
Scoped Sessions

Every client works inside an explicit AuthSession:

    guest:  POST /api/sessions/guest     -> owns a guest-storage namespace
    user:   POST /api/auth/signup|login  -> bound to a Profile

A session has a creation time, an expiry, and a teardown
(``close_session``) that revokes the token and, for guests, drops the
guest-storage namespace together with the guest cart.

Guest sessions that expire without a teardown are pruned
(``prune_expired_guest_sessions``) when the next guest session opens.

Signing in opens a new user session next to the guest one; guest cart
entries are not moved into the account cart.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import get_settings
from storefront.core.security import (
    hash_password,
    new_chat_session_id,
    new_session_token,
    verify_password,
)
from storefront.models import AuthSession, Profile, SessionKind
from storefront.services.storage import BaseGuestStorage

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Raised for invalid credentials or unusable session tokens."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def _open_session(
    db: AsyncSession,
    kind: SessionKind,
    ttl_hours: int,
    user_id: Optional[int] = None,
) -> AuthSession:
    session = AuthSession(
        token=new_session_token(),
        kind=kind,
        user_id=user_id,
        chat_session_id=new_chat_session_id(),
        expires_at=utc_now() + timedelta(hours=ttl_hours),
    )
    db.add(session)
    await db.commit()
    logger.info(f"Opened {kind.value} session #{session.id}" + (f" for user #{user_id}" if user_id else ""))
    return session


async def open_guest_session(db: AsyncSession) -> AuthSession:
    settings = get_settings()
    return await _open_session(db, SessionKind.GUEST, settings.guest_session_ttl_hours)


async def signup(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: Optional[str] = None,
) -> tuple[Profile, AuthSession]:
    """Create a profile and sign it in."""
    email = email.lower()
    existing = await db.execute(select(Profile).where(Profile.email == email))
    if existing.scalar_one_or_none():
        raise SessionError("An account with this email already exists")

    profile = Profile(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
    )
    db.add(profile)
    await db.flush()

    settings = get_settings()
    session = await _open_session(db, SessionKind.USER, settings.session_ttl_hours, profile.id)
    return profile, session


async def login(db: AsyncSession, email: str, password: str) -> AuthSession:
    result = await db.execute(select(Profile).where(Profile.email == email.lower()))
    profile = result.scalar_one_or_none()

    if not profile or not verify_password(password, profile.password_hash):
        logger.warning(f"Failed login for {email}")
        raise SessionError("Invalid email or password")

    settings = get_settings()
    return await _open_session(db, SessionKind.USER, settings.session_ttl_hours, profile.id)


async def resolve_session(db: AsyncSession, token: str) -> AuthSession:
    """
    Look up a live session by token.

    Raises:
        SessionError: unknown, revoked or expired token
    """
    result = await db.execute(select(AuthSession).where(AuthSession.token == token))
    session = result.scalar_one_or_none()

    if session is None:
        raise SessionError("Unknown session")
    if session.revoked_at is not None:
        raise SessionError("Session has been closed")
    if as_utc(session.expires_at) <= utc_now():
        raise SessionError("Session has expired")

    return session


async def close_session(
    db: AsyncSession,
    session: AuthSession,
    storage: BaseGuestStorage,
) -> None:
    """Revoke a session; a guest session also loses its storage namespace."""
    session.revoked_at = utc_now()
    await db.commit()

    if session.is_guest:
        await storage.clear(session.storage_namespace)

    logger.info(f"Closed {session.kind.value} session #{session.id}")


async def prune_expired_guest_sessions(
    db: AsyncSession,
    storage: BaseGuestStorage,
) -> int:
    """
    Tear down guest sessions that expired without being closed.

    Their storage namespaces are dropped and the rows revoked, so the
    guest storage does not keep carts nobody can reach any more.

    Returns:
        Number of sessions pruned
    """
    now = utc_now()
    result = await db.execute(
        select(AuthSession).where(
            AuthSession.kind == SessionKind.GUEST,
            AuthSession.revoked_at.is_(None),
            AuthSession.expires_at <= now,
        )
    )
    expired = list(result.scalars().all())
    if not expired:
        return 0

    for session in expired:
        await storage.clear(session.storage_namespace)
        session.revoked_at = now
    await db.commit()

    logger.info(f"Pruned {len(expired)} expired guest sessions")
    return len(expired)
