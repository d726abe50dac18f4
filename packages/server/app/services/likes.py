"""
Likes over videos, comments and tweets.

A like target is a tagged variant: one ``TargetKind`` plus one id. The
relation row stores exactly that pair, so "more than one target set" cannot
be represented.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.core.errors import NotFound
from app.core.pagination import parse_id
from app.models.content import Comment, Tweet, Video
from app.models.like import Like
from app.models.user import User
from app.services.projections import video_summary
from app.services.toggles import CachedCounter, ToggleResult, toggle
from vidhub_shared.schemas.common import TargetKind
from vidhub_shared.schemas.content import LikedVideo

LIKE_TARGETS: dict[TargetKind, type[SQLModel]] = {
    TargetKind.VIDEO: Video,
    TargetKind.COMMENT: Comment,
    TargetKind.TWEET: Tweet,
}


@dataclass(frozen=True)
class LikeTarget:
    kind: TargetKind
    id: uuid.UUID

    @classmethod
    def parse(cls, kind: TargetKind, raw_id: str | uuid.UUID) -> "LikeTarget":
        return cls(kind=kind, id=parse_id(raw_id, kind.value))


async def toggle_like(
    session: AsyncSession, actor_id: uuid.UUID, kind: TargetKind, raw_id: str | uuid.UUID
) -> ToggleResult:
    """Like or unlike a video, comment or tweet."""
    target = LikeTarget.parse(kind, raw_id)
    model = LIKE_TARGETS[target.kind]

    row = await session.get(model, target.id)
    if row is None:
        raise NotFound(f"{target.kind.value.capitalize()} not found")
    # Comments inherit the visibility of their video.
    video = await session.get(Video, row.video_id) if isinstance(row, Comment) else row
    if isinstance(video, Video) and not video.is_published and video.owner_id != actor_id:
        raise NotFound(f"{target.kind.value.capitalize()} not found")

    return await toggle(
        session,
        Like,
        {"actor_id": actor_id, "target_kind": target.kind.value, "target_id": target.id},
        counter=CachedCounter(model, target.id, "like_count"),
    )


async def list_liked_videos(
    session: AsyncSession, viewer_id: uuid.UUID
) -> list[LikedVideo]:
    """Videos the viewer has liked, newest like first, with each video's owner."""
    result = await session.execute(
        select(Like, Video, User)
        .join(Video, Video.id == Like.target_id)
        .outerjoin(User, User.id == Video.owner_id)
        .where(
            Like.actor_id == viewer_id,
            Like.target_kind == TargetKind.VIDEO.value,
            or_(Video.is_published.is_(True), Video.owner_id == viewer_id),
        )
        .order_by(Like.created_at.desc(), Like.id)
    )
    return [
        LikedVideo(video=video_summary(video, owner), liked_at=like.created_at)
        for like, video, owner in result.all()
    ]


async def is_liked(
    session: AsyncSession, viewer_id: Optional[uuid.UUID], kind: TargetKind, target_id: uuid.UUID
) -> bool:
    if viewer_id is None:
        return False
    result = await session.execute(
        select(Like.id).where(
            Like.actor_id == viewer_id,
            Like.target_kind == kind.value,
            Like.target_id == target_id,
        )
    )
    return result.first() is not None
