"""Video, comment, tweet and playlist schemas, including the annotated views."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .common import Pagination
from .users import OwnerProfile


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

class VideoUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class VideoSummary(BaseModel):
    id: UUID4
    title: str
    thumbnail: str
    video_file: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    owner: Optional[OwnerProfile] = None  # None when the owner row is gone


class VideoRead(VideoSummary):
    description: str
    like_count: int
    is_liked: bool = False
    updated_at: datetime


class VideoPage(BaseModel):
    data: List[VideoSummary]
    pagination: Pagination


class LikedVideo(BaseModel):
    video: VideoSummary
    liked_at: datetime


class WatchHistoryEntry(BaseModel):
    video: VideoSummary
    watched_at: datetime


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class CommentCreate(BaseModel):
    content: str
    parent_id: Optional[str] = None  # reply target (a top-level comment)


class CommentUpdate(BaseModel):
    content: str


class CommentRead(BaseModel):
    id: UUID4
    video_id: UUID4
    parent_id: Optional[UUID4] = None
    owner_id: UUID4
    content: str
    created_at: datetime
    updated_at: datetime


class AnnotatedReply(BaseModel):
    id: UUID4
    content: str
    created_at: datetime
    owner: Optional[OwnerProfile] = None
    like_count: int = 0
    is_liked: bool = False


class AnnotatedComment(AnnotatedReply):
    reply_count: int = 0
    replies: List[AnnotatedReply] = Field(default_factory=list)


class CommentPage(BaseModel):
    data: List[AnnotatedComment]
    pagination: Pagination


class ReplyPage(BaseModel):
    data: List[AnnotatedReply]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Tweets
# ---------------------------------------------------------------------------

class TweetWrite(BaseModel):
    content: str


class TweetRead(BaseModel):
    id: UUID4
    owner_id: UUID4
    content: str
    like_count: int = 0
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------

class PlaylistWrite(BaseModel):
    name: str
    description: str


class PlaylistRead(BaseModel):
    id: UUID4
    owner_id: UUID4
    name: str
    description: str
    video_count: int = 0
    created_at: datetime
    updated_at: datetime


class PlaylistDetail(PlaylistRead):
    videos: List[VideoSummary] = Field(default_factory=list)
