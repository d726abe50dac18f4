"""
Authentication primitives for VidHub.

Supports:
- Password hashing (bcrypt, salted, one-way)
- Access/refresh token signing with distinct secrets and expiries
- Refresh token digests for the stored session slot
- JWT revocation list in Redis (logout kills the live access token)
- FastAPI dependencies resolving the current account
"""

from __future__ import annotations

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Unauthorized
from app.core.redis import get_redis
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"
CSRF_COOKIE = "csrf_token"

# bcrypt only looks at the first 72 bytes of input.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    return bcrypt.hashpw(
        password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_access_token(
    user_id: uuid.UUID,
    username: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a short-lived signed access token. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": str(user_id),
        "username": username,
        "type": "access",
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.access_token_secret, algorithm=settings.jwt_algorithm)
    return token, jti


def create_refresh_token(
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a long-lived signed refresh token bound to a session slot."""
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(days=settings.refresh_token_expire_days))
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "type": "refresh",
        "iat": now,
        "exp": exp,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.refresh_token_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Raises jwt.PyJWTError on failure."""
    payload = jwt.decode(token, settings.access_token_secret, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def decode_refresh_token(token: str) -> dict:
    """Decode and verify a refresh token. Raises jwt.PyJWTError on failure."""
    payload = jwt.decode(token, settings.refresh_token_secret, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != "refresh":
        raise jwt.InvalidTokenError("Not a refresh token")
    return payload


def token_digest(token: str) -> str:
    """SHA-256 of a refresh token; the session row stores this, never the token."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_csrf_token() -> str:
    """Generate a random CSRF token for the double-submit cookie."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int | None = None) -> None:
    """Add a JWT ID to the revocation list in Redis."""
    ttl = ttl_seconds or settings.access_token_expire_minutes * 60
    redis = await get_redis()
    await redis.setex(f"jwt:revoked:{jti}", ttl, "1")


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    redis = await get_redis()
    return await redis.exists(f"jwt:revoked:{jti}") > 0


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class CurrentAccount:
    """Container for an authenticated account + the access token it presented."""

    def __init__(self, user: User, token_payload: dict):
        self.user = user
        self.user_id = user.id
        self.username = user.username
        self.jti = token_payload.get("jti")
        self.expires_at = token_payload.get("exp")


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(ACCESS_COOKIE)


async def _authenticate(token: str, session: AsyncSession) -> CurrentAccount:
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise Unauthorized("Invalid or expired access token")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise Unauthorized("Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise Unauthorized("Invalid access token")

    user = await session.get(User, user_id)
    if not user:
        raise Unauthorized("Account not found")
    return CurrentAccount(user=user, token_payload=payload)


async def get_current_account(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> CurrentAccount:
    """Main authentication dependency: Bearer header first, then the access cookie."""
    token = _extract_token(request, authorization)
    if not token:
        raise Unauthorized("Authentication required")
    auth = await _authenticate(token, session)
    request.state.auth = auth
    return auth


async def get_optional_account(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> Optional[CurrentAccount]:
    """Like get_current_account, but anonymous viewers resolve to None."""
    token = _extract_token(request, authorization)
    if not token:
        return None
    return await _authenticate(token, session)
