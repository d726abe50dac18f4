"""Like edge with a single discriminated target (video | comment | tweet)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import _utcnow


class Like(SQLModel, table=True):
    __tablename__ = "likes"
    __table_args__ = (
        sa.UniqueConstraint("actor_id", "target_kind", "target_id", name="uq_likes_actor_target"),
        sa.CheckConstraint("target_kind IN ('video', 'comment', 'tweet')", name="ck_likes_target_kind"),
        sa.Index("ix_likes_target", "target_kind", "target_id"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    actor_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    target_kind: str = Field(nullable=False)  # TargetKind value
    target_id: uuid.UUID = Field(nullable=False)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
