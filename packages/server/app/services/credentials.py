"""
Credential service: registration, login, refresh-token rotation, logout and
password changes.

Refresh sessions live in ``auth_sessions``; each row holds the digest of the
one refresh token currently allowed to rotate that session. Rotation is a
compare-and-swap on that digest, so a superseded (or forged) refresh token
never verifies twice.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import jwt
import structlog
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    revoke_jwt,
    token_digest,
    verify_password,
)
from app.core.config import get_settings
from app.core.errors import Conflict, NotFound, Unauthorized, ValidationError
from app.models.user import AuthSession, User
from vidhub_shared.schemas.users import RegisterRequest, TokenPair

log = structlog.get_logger()
settings = get_settings()

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class IssuedSession:
    user: User
    tokens: TokenPair


def _validate_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


async def _issue_pair(session: AsyncSession, user: User) -> TokenPair:
    """Open a new refresh session for ``user`` and sign both tokens."""
    if settings.single_session:
        await session.execute(delete(AuthSession).where(AuthSession.user_id == user.id))

    session_id = uuid.uuid4()
    refresh_token = create_refresh_token(user.id, session_id)
    session.add(
        AuthSession(id=session_id, user_id=user.id, token_digest=token_digest(refresh_token))
    )
    await session.flush()

    access_token, _jti = create_access_token(user.id, user.username)
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


# ---------------------------------------------------------------------------
# Registration & login
# ---------------------------------------------------------------------------

async def register(
    session: AsyncSession,
    req: RegisterRequest,
    *,
    avatar_url: Optional[str] = None,
    cover_image_url: Optional[str] = None,
) -> User:
    """Create an account. Username and email are unique case-insensitively."""
    fields = [req.username, str(req.email), req.password, req.full_name]
    if any(not (value or "").strip() for value in fields):
        raise ValidationError("All fields are required")
    _validate_new_password(req.password)

    username = req.username.strip().lower()
    email = str(req.email).strip().lower()

    result = await session.execute(
        select(User).where(or_(User.username == username, User.email == email))
    )
    if result.scalars().first():
        raise Conflict("Username or email already exists")

    user = User(
        username=username,
        email=email,
        full_name=req.full_name.strip(),
        password_hash=hash_password(req.password),
        avatar=avatar_url or settings.default_avatar_url,
        cover_image=cover_image_url,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same name.
        raise Conflict("Username or email already exists")

    log.info("user.registered", user_id=str(user.id), username=username)
    return user


async def authenticate(session: AsyncSession, identifier: str, password: str) -> IssuedSession:
    """Log in by username or email and issue a fresh token pair."""
    ident = (identifier or "").strip().lower()
    if not ident:
        raise ValidationError("Email or username is required")

    result = await session.execute(
        select(User).where(or_(User.username == ident, User.email == ident))
    )
    user = result.scalars().first()
    if not user:
        raise NotFound("User not found")

    if not verify_password(password or "", user.password_hash):
        log.warning("auth.login_failure", user_id=str(user.id), reason="bad_password")
        raise Unauthorized("Invalid user credentials")

    tokens = await _issue_pair(session, user)
    log.info("auth.login_success", user_id=str(user.id))
    return IssuedSession(user=user, tokens=tokens)


# ---------------------------------------------------------------------------
# Session management
# ---------------------------------------------------------------------------

async def refresh(session: AsyncSession, refresh_token: Optional[str]) -> TokenPair:
    """Rotate a refresh token. The presented token must be the one currently stored."""
    if not refresh_token:
        raise Unauthorized("Unauthorized request")

    try:
        payload = decode_refresh_token(refresh_token)
        user_id = uuid.UUID(payload["sub"])
        session_id = uuid.UUID(payload["sid"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise Unauthorized("Invalid refresh token")

    user = await session.get(User, user_id)
    if not user:
        raise Unauthorized("Invalid refresh token")

    new_refresh = create_refresh_token(user.id, session_id)
    result = await session.execute(
        update(AuthSession)
        .where(
            AuthSession.id == session_id,
            AuthSession.user_id == user.id,
            AuthSession.token_digest == token_digest(refresh_token),
        )
        .values(token_digest=token_digest(new_refresh), rotated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        log.warning("auth.refresh_rejected", user_id=str(user.id), session_id=str(session_id))
        raise Unauthorized("Refresh token is expired or used")

    access_token, _jti = create_access_token(user.id, user.username)
    log.info("auth.refreshed", user_id=str(user.id), session_id=str(session_id))
    return TokenPair(access_token=access_token, refresh_token=new_refresh)


async def logout(
    session: AsyncSession, user_id: uuid.UUID, *, access_jti: Optional[str] = None
) -> None:
    """Drop every refresh session of the account and revoke the presented access token."""
    await session.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
    if access_jti:
        await revoke_jwt(access_jti)
    log.info("auth.logout", user_id=str(user_id))


async def change_password(
    session: AsyncSession, user_id: uuid.UUID, old_password: str, new_password: str
) -> None:
    """Replace the password hash. Existing refresh sessions stay valid."""
    user = await session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    if not verify_password(old_password or "", user.password_hash):
        raise Unauthorized("Invalid old password")
    _validate_new_password(new_password)

    user.password_hash = hash_password(new_password)
    session.add(user)
    await session.flush()
    log.info("auth.password_changed", user_id=str(user_id))
