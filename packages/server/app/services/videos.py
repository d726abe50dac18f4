"""
Video catalogue: publish, browse, view, edit, delete.

Unpublished videos exist only for their owner; everybody else gets
``NotFound`` as if the row were absent.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.assets import AssetHost
from app.core.database import insert_ignore
from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.pagination import PageParams, parse_id
from app.models.base import _utcnow
from app.models.content import Comment, Video
from app.models.like import Like
from app.models.playlist import PlaylistVideo
from app.models.user import User
from app.models.watch_history import WatchHistory
from app.services.likes import is_liked
from app.services.projections import video_summary
from vidhub_shared.schemas.common import SortOrder, TargetKind, VideoSortField
from vidhub_shared.schemas.content import VideoPage, VideoRead, VideoSummary

log = structlog.get_logger()

SORT_COLUMNS = {
    VideoSortField.CREATED_AT: Video.created_at,
    VideoSortField.VIEWS: Video.views,
    VideoSortField.DURATION: Video.duration,
    VideoSortField.TITLE: Video.title,
}


def video_read(video: Video, owner: Optional[User], liked: bool = False) -> VideoRead:
    return VideoRead(
        **video_summary(video, owner).model_dump(),
        description=video.description,
        like_count=video.like_count,
        is_liked=liked,
        updated_at=video.updated_at,
    )


async def get_owned_video(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> Video:
    video = await session.get(Video, parse_id(raw_id, "video"))
    if not video:
        raise NotFound("Video not found")
    if video.owner_id != owner_id:
        raise Forbidden("You can only modify your own videos")
    return video


async def publish_video(
    session: AsyncSession,
    assets: AssetHost,
    owner_id: uuid.UUID,
    *,
    title: str,
    description: str,
    video_path: str,
    thumbnail_path: str,
    duration: float = 0.0,
) -> Video:
    """Upload the media through the asset host and record the video."""
    if not (title or "").strip() or not (description or "").strip():
        raise ValidationError("Title and description are required")
    if not video_path or not thumbnail_path:
        raise ValidationError("Video file and thumbnail are required")

    video_url = await assets.upload(video_path, "videos")
    thumbnail_url = await assets.upload(thumbnail_path, "thumbnails")

    video = Video(
        owner_id=owner_id,
        title=title.strip(),
        description=description.strip(),
        video_file=video_url,
        thumbnail=thumbnail_url,
        duration=max(0.0, float(duration or 0.0)),
    )
    session.add(video)
    await session.flush()
    await session.refresh(video)
    log.info("video.published", video_id=str(video.id), owner_id=str(owner_id))
    return video


async def record_view(session: AsyncSession, video_id: uuid.UUID, viewer_id: uuid.UUID) -> None:
    """Bump the view counter and move the video to the top of the viewer's history."""
    await session.execute(
        update(Video).where(Video.id == video_id).values(views=Video.views + 1)
    )
    updated = await session.execute(
        update(WatchHistory)
        .where(WatchHistory.user_id == viewer_id, WatchHistory.video_id == video_id)
        .values(watched_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    if updated.rowcount == 0:
        await session.execute(
            insert_ignore(
                session,
                WatchHistory.__table__,
                {"user_id": viewer_id, "video_id": video_id, "watched_at": _utcnow()},
            )
        )


async def get_video(
    session: AsyncSession, raw_id: str | uuid.UUID, viewer_id: Optional[uuid.UUID]
) -> VideoRead:
    video_id = parse_id(raw_id, "video")
    video = await session.get(Video, video_id)
    if not video or (not video.is_published and video.owner_id != viewer_id):
        raise NotFound("Video not found")

    if viewer_id is not None:
        await record_view(session, video_id, viewer_id)
        await session.refresh(video)

    owner = await session.get(User, video.owner_id)
    liked = await is_liked(session, viewer_id, TargetKind.VIDEO, video_id)
    return video_read(video, owner, liked)


async def list_videos(
    session: AsyncSession,
    params: PageParams,
    *,
    query: Optional[str] = None,
    sort_by: VideoSortField = VideoSortField.CREATED_AT,
    sort_type: SortOrder = SortOrder.DESC,
    owner_id: Optional[str] = None,
) -> VideoPage:
    """Published videos, optionally filtered by title substring and owner."""
    conditions = [Video.is_published.is_(True)]
    if query and query.strip():
        conditions.append(func.lower(Video.title).contains(query.strip().lower()))
    if owner_id:
        conditions.append(Video.owner_id == parse_id(owner_id, "user"))

    total = (
        await session.execute(select(func.count(Video.id)).where(*conditions))
    ).scalar_one()

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_type == SortOrder.ASC else column.desc()
    result = await session.execute(
        select(Video, User)
        .outerjoin(User, User.id == Video.owner_id)
        .where(*conditions)
        .order_by(ordering, Video.id)
        .offset(params.offset)
        .limit(params.page_size)
    )
    return VideoPage(
        data=[video_summary(video, owner) for video, owner in result.all()],
        pagination=params.describe(total),
    )


async def update_video(
    session: AsyncSession,
    assets: AssetHost,
    raw_id: str | uuid.UUID,
    owner_id: uuid.UUID,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    thumbnail_path: Optional[str] = None,
) -> Video:
    video = await get_owned_video(session, raw_id, owner_id)

    if title is not None:
        if not title.strip():
            raise ValidationError("Title cannot be blank")
        video.title = title.strip()
    if description is not None:
        if not description.strip():
            raise ValidationError("Description cannot be blank")
        video.description = description.strip()
    if thumbnail_path:
        video.thumbnail = await assets.upload(thumbnail_path, "thumbnails")

    session.add(video)
    await session.flush()
    await session.refresh(video)
    log.info("video.updated", video_id=str(video.id))
    return video


async def delete_video(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> None:
    """Delete a video together with its comments, likes, playlist entries and history rows."""
    video = await get_owned_video(session, raw_id, owner_id)

    comment_ids = (
        await session.execute(select(Comment.id).where(Comment.video_id == video.id))
    ).scalars().all()
    if comment_ids:
        await session.execute(
            delete(Like).where(
                Like.target_kind == TargetKind.COMMENT.value, Like.target_id.in_(comment_ids)
            )
        )
    await session.execute(
        delete(Like).where(Like.target_kind == TargetKind.VIDEO.value, Like.target_id == video.id)
    )
    # Replies first; they reference their top-level parent.
    await session.execute(
        delete(Comment)
        .where(Comment.video_id == video.id, Comment.parent_id.is_not(None))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Comment)
        .where(Comment.video_id == video.id)
        .execution_options(synchronize_session=False)
    )
    await session.execute(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id))
    await session.execute(delete(WatchHistory).where(WatchHistory.video_id == video.id))
    await session.delete(video)
    await session.flush()
    log.info("video.deleted", video_id=str(video.id), comments=len(comment_ids))


async def toggle_publish_status(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> Video:
    video = await get_owned_video(session, raw_id, owner_id)
    video.is_published = not video.is_published
    session.add(video)
    await session.flush()
    await session.refresh(video)
    log.info("video.publish_toggled", video_id=str(video.id), is_published=video.is_published)
    return video


async def list_channel_videos(session: AsyncSession, owner_id: uuid.UUID) -> list[VideoSummary]:
    """All of an account's own videos, unpublished included, newest first."""
    owner = await session.get(User, owner_id)
    if not owner:
        raise NotFound("User not found")
    result = await session.execute(
        select(Video)
        .where(Video.owner_id == owner_id)
        .order_by(Video.created_at.desc(), Video.id)
    )
    return [video_summary(video, owner) for video in result.scalars().all()]
