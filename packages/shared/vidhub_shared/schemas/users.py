"""Account, credential and channel schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, UUID4


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str
    full_name: str


class LoginRequest(BaseModel):
    """Identify by username or email (either one)."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: str


class RefreshRequest(BaseModel):
    """Body fallback when the refresh token is not sent as a cookie."""
    refresh_token: Optional[str] = None


class PasswordChangeRequest(BaseModel):
    old_password: str
    new_password: str


class AccountUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AccountResponse(BaseModel):
    """The account as seen by its owner (never includes credentials)."""
    id: UUID4
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: Optional[str] = None
    created_at: datetime


class SessionResponse(BaseModel):
    user: AccountResponse
    access_token: str
    refresh_token: str


class OwnerProfile(BaseModel):
    """Public projection of an account embedded in content listings."""
    id: UUID4
    username: str
    full_name: str
    avatar: str


class ChannelProfile(BaseModel):
    id: UUID4
    full_name: str
    username: str
    subscriber_count: int
    subscribed_to_count: int
    is_subscribed: bool
    avatar: str
    cover_image: Optional[str] = None
    email: str  # exposed publicly; see DESIGN.md open questions


class ChannelStats(BaseModel):
    video_count: int = 0
    subscriber_count: int = 0
    tweet_count: int = 0


class SubscriptionEntry(BaseModel):
    """The account on the other side of a subscription edge."""
    account: OwnerProfile
    subscribed_at: datetime


class SubscriptionList(BaseModel):
    data: List[SubscriptionEntry]


class ToggleResponse(BaseModel):
    active: bool
    count: Optional[int] = None
