"""Playlists: an owned, ordered set of videos."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, _utcnow


class Playlist(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "playlists"

    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: str = Field(nullable=False)


class PlaylistVideo(SQLModel, table=True):
    __tablename__ = "playlist_videos"

    playlist_id: uuid.UUID = Field(foreign_key="playlists.id", primary_key=True)
    video_id: uuid.UUID = Field(foreign_key="videos.id", primary_key=True)
    position: int = Field(nullable=False, sa_type=sa.BigInteger)
    added_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
