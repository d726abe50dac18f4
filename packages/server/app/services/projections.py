"""
Row -> schema projections shared by the read paths.

Owner rows come from outer joins, so every projection tolerates a missing
account and emits ``owner=None`` instead of failing the whole listing.
"""

from __future__ import annotations

from typing import Optional

from app.models.content import Video
from app.models.user import User
from vidhub_shared.schemas.content import VideoSummary
from vidhub_shared.schemas.users import AccountResponse, OwnerProfile


def owner_profile(user: Optional[User]) -> Optional[OwnerProfile]:
    if user is None:
        return None
    return OwnerProfile(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar=user.avatar,
    )


def account_response(user: User) -> AccountResponse:
    return AccountResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        avatar=user.avatar,
        cover_image=user.cover_image,
        created_at=user.created_at,
    )


def video_summary(video: Video, owner: Optional[User]) -> VideoSummary:
    return VideoSummary(
        id=video.id,
        title=video.title,
        thumbnail=video.thumbnail,
        video_file=video.video_file,
        duration=video.duration,
        views=video.views,
        is_published=video.is_published,
        created_at=video.created_at,
        owner=owner_profile(owner),
    )
