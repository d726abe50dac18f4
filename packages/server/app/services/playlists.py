"""
Playlists: an owned, ordered set of videos.

Membership is keyed by (playlist, video), so adding a video twice is a
no-op. New entries go to the end; ``position`` only ever grows.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import insert_ignore
from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.pagination import parse_id
from app.models.content import Video
from app.models.playlist import Playlist, PlaylistVideo
from app.models.user import User
from app.services.projections import video_summary
from vidhub_shared.schemas.content import PlaylistDetail, PlaylistRead

log = structlog.get_logger()


def playlist_read(playlist: Playlist, video_count: int = 0) -> PlaylistRead:
    return PlaylistRead(
        id=playlist.id,
        owner_id=playlist.owner_id,
        name=playlist.name,
        description=playlist.description,
        video_count=video_count,
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
    )


def _require_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


async def _owned_playlist(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> Playlist:
    playlist = await session.get(Playlist, parse_id(raw_id, "playlist"))
    if not playlist:
        raise NotFound("Playlist not found")
    if playlist.owner_id != owner_id:
        raise Forbidden("You can only modify your own playlists")
    return playlist


async def _video_count(session: AsyncSession, playlist_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist_id)
    )
    return result.scalar_one()


async def create_playlist(
    session: AsyncSession, owner_id: uuid.UUID, name: Optional[str], description: Optional[str]
) -> PlaylistRead:
    playlist = Playlist(
        owner_id=owner_id,
        name=_require_text(name, "Name"),
        description=_require_text(description, "Description"),
    )
    session.add(playlist)
    await session.flush()
    await session.refresh(playlist)
    log.info("playlist.created", playlist_id=str(playlist.id), owner_id=str(owner_id))
    return playlist_read(playlist)


async def list_user_playlists(
    session: AsyncSession, raw_user_id: str | uuid.UUID
) -> list[PlaylistRead]:
    user_id = parse_id(raw_user_id, "user")
    if not await session.get(User, user_id):
        raise NotFound("User not found")

    counts = (
        select(PlaylistVideo.playlist_id, func.count().label("cnt"))
        .group_by(PlaylistVideo.playlist_id)
        .subquery()
    )
    result = await session.execute(
        select(Playlist, func.coalesce(counts.c.cnt, 0))
        .outerjoin(counts, counts.c.playlist_id == Playlist.id)
        .where(Playlist.owner_id == user_id)
        .order_by(Playlist.created_at.desc(), Playlist.id)
    )
    return [playlist_read(p, n) for p, n in result.all()]


async def get_playlist(
    session: AsyncSession, raw_id: str | uuid.UUID, viewer_id: Optional[uuid.UUID] = None
) -> PlaylistDetail:
    """A playlist with its videos in position order. Others' unpublished videos are hidden."""
    playlist = await session.get(Playlist, parse_id(raw_id, "playlist"))
    if not playlist:
        raise NotFound("Playlist not found")

    result = await session.execute(
        select(Video, User)
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .outerjoin(User, User.id == Video.owner_id)
        .where(PlaylistVideo.playlist_id == playlist.id)
        .order_by(PlaylistVideo.position, PlaylistVideo.added_at)
    )
    videos = [
        video_summary(video, owner)
        for video, owner in result.all()
        if video.is_published or video.owner_id == viewer_id
    ]
    return PlaylistDetail(**playlist_read(playlist, len(videos)).model_dump(), videos=videos)


async def add_video_to_playlist(
    session: AsyncSession,
    raw_playlist_id: str | uuid.UUID,
    raw_video_id: str | uuid.UUID,
    owner_id: uuid.UUID,
) -> PlaylistDetail:
    playlist = await _owned_playlist(session, raw_playlist_id, owner_id)
    video_id = parse_id(raw_video_id, "video")
    video = await session.get(Video, video_id)
    if not video or (not video.is_published and video.owner_id != owner_id):
        raise NotFound("Video not found")

    next_position = (
        await session.execute(
            select(func.coalesce(func.max(PlaylistVideo.position), 0) + 1).where(
                PlaylistVideo.playlist_id == playlist.id
            )
        )
    ).scalar_one()
    await session.execute(
        insert_ignore(
            session,
            PlaylistVideo.__table__,
            PlaylistVideo(playlist_id=playlist.id, video_id=video_id, position=next_position).model_dump(),
        )
    )
    log.info("playlist.video_added", playlist_id=str(playlist.id), video_id=str(video_id))
    return await get_playlist(session, playlist.id, owner_id)


async def remove_video_from_playlist(
    session: AsyncSession,
    raw_playlist_id: str | uuid.UUID,
    raw_video_id: str | uuid.UUID,
    owner_id: uuid.UUID,
) -> PlaylistDetail:
    playlist = await _owned_playlist(session, raw_playlist_id, owner_id)
    video_id = parse_id(raw_video_id, "video")
    await session.execute(
        delete(PlaylistVideo).where(
            PlaylistVideo.playlist_id == playlist.id, PlaylistVideo.video_id == video_id
        )
    )
    log.info("playlist.video_removed", playlist_id=str(playlist.id), video_id=str(video_id))
    return await get_playlist(session, playlist.id, owner_id)


async def update_playlist(
    session: AsyncSession,
    raw_id: str | uuid.UUID,
    owner_id: uuid.UUID,
    name: Optional[str],
    description: Optional[str],
) -> PlaylistRead:
    playlist = await _owned_playlist(session, raw_id, owner_id)
    playlist.name = _require_text(name, "Name")
    playlist.description = _require_text(description, "Description")
    session.add(playlist)
    await session.flush()
    await session.refresh(playlist)
    return playlist_read(playlist, await _video_count(session, playlist.id))


async def delete_playlist(session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID) -> None:
    playlist = await _owned_playlist(session, raw_id, owner_id)
    await session.execute(delete(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist.id))
    await session.delete(playlist)
    await session.flush()
    log.info("playlist.deleted", playlist_id=str(playlist.id))
