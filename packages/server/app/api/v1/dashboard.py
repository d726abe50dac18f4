"""
Creator dashboard: own channel stats and every own video.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentAccount, get_current_account
from app.core.database import get_session
from app.services.aggregation import get_channel_stats
from app.services.videos import list_channel_videos
from vidhub_shared.schemas.content import VideoSummary
from vidhub_shared.schemas.users import ChannelStats

router = APIRouter()


@router.get("/stats", response_model=ChannelStats)
async def channel_stats(
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await get_channel_stats(session, auth.user_id)


@router.get("/videos", response_model=List[VideoSummary])
async def channel_videos(
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Every video of the current account, unpublished included."""
    return await list_channel_videos(session, auth.user_id)
