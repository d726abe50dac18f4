"""
Like toggles and the liked-videos list.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentAccount, get_current_account
from app.core.database import get_session
from app.services import likes as like_service
from vidhub_shared.schemas.common import TargetKind
from vidhub_shared.schemas.content import LikedVideo
from vidhub_shared.schemas.users import ToggleResponse

router = APIRouter()


async def _toggle(session: AsyncSession, auth: CurrentAccount, kind: TargetKind, raw_id: str):
    result = await like_service.toggle_like(session, auth.user_id, kind, raw_id)
    return ToggleResponse(active=result.active, count=result.count)


@router.post("/toggle/v/{videoId}", response_model=ToggleResponse)
async def toggle_video_like(
    videoId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await _toggle(session, auth, TargetKind.VIDEO, videoId)


@router.post("/toggle/c/{commentId}", response_model=ToggleResponse)
async def toggle_comment_like(
    commentId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await _toggle(session, auth, TargetKind.COMMENT, commentId)


@router.post("/toggle/t/{tweetId}", response_model=ToggleResponse)
async def toggle_tweet_like(
    tweetId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await _toggle(session, auth, TargetKind.TWEET, tweetId)


@router.get("/videos", response_model=List[LikedVideo])
async def liked_videos(
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Videos the current account liked, newest like first."""
    return await like_service.list_liked_videos(session, auth.user_id)
