"""Per-account watch history (one row per video, refreshed on every view)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import _utcnow


class WatchHistory(SQLModel, table=True):
    __tablename__ = "watch_history"

    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    video_id: uuid.UUID = Field(foreign_key="videos.id", primary_key=True)
    watched_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        index=True,
        sa_type=sa.DateTime(timezone=True),
    )
