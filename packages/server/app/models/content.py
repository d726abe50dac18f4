"""Content models: videos, comments (two-level threads) and tweets."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, insertion_seq


class Video(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "videos"

    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    video_file: str = Field(nullable=False)  # asset host URL
    thumbnail: str = Field(nullable=False)  # asset host URL
    duration: float = Field(default=0.0, nullable=False)
    views: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})
    is_published: bool = Field(default=True, nullable=False)
    like_count: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})


class Comment(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "comments"
    __table_args__ = (
        sa.Index("ix_comments_video_parent_created", "video_id", "parent_id", "created_at"),
    )

    video_id: uuid.UUID = Field(foreign_key="videos.id", nullable=False, index=True)
    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    # NULL for top-level comments; replies point at a top-level comment only.
    parent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="comments.id", index=True)
    content: str = Field(nullable=False)
    seq: int = Field(default_factory=insertion_seq, nullable=False, sa_type=sa.BigInteger)
    like_count: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})


class Tweet(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tweets"

    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    content: str = Field(nullable=False)
    like_count: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": "0"})
