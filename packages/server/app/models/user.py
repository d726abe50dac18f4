"""Account model and refresh-session slots."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, _utcnow


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    username: str = Field(nullable=False, unique=True, index=True)  # stored lowercase
    email: str = Field(nullable=False, unique=True, index=True)  # stored lowercase
    full_name: str = Field(nullable=False)
    password_hash: str = Field(nullable=False)  # bcrypt
    avatar: str = Field(nullable=False)
    cover_image: Optional[str] = Field(default=None)
    # Cached rollup; relation rows in `subscriptions` are authoritative.
    subscriber_count: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})


class AuthSession(SQLModel, table=True):
    """One refresh-token slot. The stored digest is the only token value that may refresh."""

    __tablename__ = "auth_sessions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    token_digest: str = Field(nullable=False)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
    rotated_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
