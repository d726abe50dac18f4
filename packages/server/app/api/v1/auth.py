"""
Authentication endpoints.

- Registration & login (username or email)
- Refresh-token rotation (cookie or body)
- Logout (drops every refresh session, revokes the live access token)
- Password change
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    ACCESS_COOKIE,
    CSRF_COOKIE,
    REFRESH_COOKIE,
    CurrentAccount,
    generate_csrf_token,
    get_current_account,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.services import credentials
from app.services.projections import account_response
from vidhub_shared.schemas.users import (
    AccountResponse,
    LoginRequest,
    PasswordChangeRequest,
    RefreshRequest,
    RegisterRequest,
    SessionResponse,
    TokenPair,
)

settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
}


def _set_session_cookies(response: Response, tokens: TokenPair) -> None:
    """Set the access/refresh token cookies and a fresh CSRF cookie."""
    access_max_age = settings.access_token_expire_minutes * 60
    response.set_cookie(
        key=ACCESS_COOKIE, value=tokens.access_token, max_age=access_max_age, **COOKIE_KWARGS
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 86400,
        **COOKIE_KWARGS,
    )
    response.set_cookie(
        key=CSRF_COOKIE,
        value=generate_csrf_token(),
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=access_max_age,
    )


def _clear_session_cookies(response: Response) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE, CSRF_COOKIE):
        response.delete_cookie(key, path="/")


# ---------------------------------------------------------------------------
# Registration & login
# ---------------------------------------------------------------------------

@router.post("/register", response_model=AccountResponse, status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create an account. The avatar defaults until one is uploaded."""
    user = await credentials.register(session, body)
    return account_response(user)


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with username or email and receive a token pair."""
    issued = await credentials.authenticate(session, body.username or body.email, body.password)
    _set_session_cookies(response, issued.tokens)
    return SessionResponse(
        user=account_response(issued.user),
        access_token=issued.tokens.access_token,
        refresh_token=issued.tokens.refresh_token,
    )


# ---------------------------------------------------------------------------
# Session management
# ---------------------------------------------------------------------------

@router.post("/refresh", response_model=TokenPair)
async def refresh_session(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    session: AsyncSession = Depends(get_session),
):
    """Rotate the refresh token. The presented token stops working immediately."""
    token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    tokens = await credentials.refresh(session, token)
    _set_session_cookies(response, tokens)
    return tokens


@router.post("/logout")
async def logout(
    response: Response,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Invalidate every session of the current account."""
    await credentials.logout(session, auth.user_id, access_jti=auth.jti)
    _clear_session_cookies(response)
    return {"message": "Logged out"}


@router.post("/change-password")
async def change_password(
    body: PasswordChangeRequest,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    await credentials.change_password(session, auth.user_id, body.old_password, body.new_password)
    return {"message": "Password changed"}
