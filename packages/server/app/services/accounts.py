"""
Account profile maintenance and watch history.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.assets import AssetHost
from app.core.errors import Conflict, NotFound, ValidationError
from app.models.content import Video
from app.models.user import User
from app.models.watch_history import WatchHistory
from app.services.projections import video_summary
from vidhub_shared.schemas.content import WatchHistoryEntry

log = structlog.get_logger()


async def _get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def update_account(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
) -> User:
    if full_name is None and email is None:
        raise ValidationError("Nothing to update")
    user = await _get_user(session, user_id)

    if full_name is not None:
        if not full_name.strip():
            raise ValidationError("Full name cannot be blank")
        user.full_name = full_name.strip()

    if email is not None:
        new_email = email.strip().lower()
        if not new_email:
            raise ValidationError("Email cannot be blank")
        if new_email != user.email:
            taken = await session.execute(
                select(User.id).where(User.email == new_email, User.id != user.id)
            )
            if taken.first():
                raise Conflict("Email already in use")
            user.email = new_email

    session.add(user)
    await session.flush()
    await session.refresh(user)
    log.info("user.updated", user_id=str(user.id))
    return user


async def update_avatar(
    session: AsyncSession, assets: AssetHost, user_id: uuid.UUID, local_path: Optional[str]
) -> User:
    if not local_path:
        raise ValidationError("Avatar file is missing")
    user = await _get_user(session, user_id)
    user.avatar = await assets.upload(local_path, "avatars")
    session.add(user)
    await session.flush()
    await session.refresh(user)
    log.info("user.avatar_updated", user_id=str(user.id))
    return user


async def update_cover_image(
    session: AsyncSession, assets: AssetHost, user_id: uuid.UUID, local_path: Optional[str]
) -> User:
    if not local_path:
        raise ValidationError("Cover image file is missing")
    user = await _get_user(session, user_id)
    user.cover_image = await assets.upload(local_path, "covers")
    session.add(user)
    await session.flush()
    await session.refresh(user)
    log.info("user.cover_image_updated", user_id=str(user.id))
    return user


async def list_watch_history(session: AsyncSession, user_id: uuid.UUID) -> list[WatchHistoryEntry]:
    """Watched videos, most recently watched first, each with its owner profile."""
    await _get_user(session, user_id)
    result = await session.execute(
        select(WatchHistory, Video, User)
        .join(Video, Video.id == WatchHistory.video_id)
        .outerjoin(User, User.id == Video.owner_id)
        .where(WatchHistory.user_id == user_id)
        .order_by(WatchHistory.watched_at.desc())
    )
    return [
        WatchHistoryEntry(video=video_summary(video, owner), watched_at=entry.watched_at)
        for entry, video, owner in result.all()
        if video.is_published or video.owner_id == user_id
    ]
