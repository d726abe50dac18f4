"""
Video endpoints: catalogue, upload, edit, publish toggle.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.assets import AssetHost, get_asset_host, stash_upload
from app.core.auth import CurrentAccount, get_current_account, get_optional_account
from app.core.database import get_session
from app.core.pagination import PageParams, page_params
from app.models.user import User
from app.services import videos as video_service
from vidhub_shared.schemas.common import SortOrder, VideoSortField
from vidhub_shared.schemas.content import VideoPage, VideoRead, VideoUpdate

router = APIRouter()


@router.get("/", response_model=VideoPage)
async def list_videos(
    query: Optional[str] = Query(None, description="Title substring"),
    sort_by: VideoSortField = VideoSortField.CREATED_AT,
    sort_type: SortOrder = SortOrder.DESC,
    owner_id: Optional[str] = None,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    """Browse published videos."""
    return await video_service.list_videos(
        session, params, query=query, sort_by=sort_by, sort_type=sort_type, owner_id=owner_id
    )


@router.post("/", response_model=VideoRead, status_code=201)
async def publish_video(
    title: str = Form(...),
    description: str = Form(...),
    duration: float = Form(0.0),
    video_file: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
    assets: AssetHost = Depends(get_asset_host),
):
    """Upload a video and its thumbnail."""
    video_path = await stash_upload(video_file)
    thumbnail_path = await stash_upload(thumbnail)
    video = await video_service.publish_video(
        session,
        assets,
        auth.user_id,
        title=title,
        description=description,
        video_path=video_path,
        thumbnail_path=thumbnail_path,
        duration=duration,
    )
    return video_service.video_read(video, auth.user)


@router.get("/{videoId}", response_model=VideoRead)
async def get_video(
    videoId: str,
    auth: Optional[CurrentAccount] = Depends(get_optional_account),
    session: AsyncSession = Depends(get_session),
):
    """Fetch a video. Signed-in viewers get a view and a history entry recorded."""
    return await video_service.get_video(session, videoId, auth.user_id if auth else None)


@router.patch("/{videoId}", response_model=VideoRead)
async def update_video(
    videoId: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
    assets: AssetHost = Depends(get_asset_host),
):
    body = VideoUpdate(title=title, description=description)
    thumbnail_path = await stash_upload(thumbnail) if thumbnail is not None else None
    video = await video_service.update_video(
        session,
        assets,
        videoId,
        auth.user_id,
        title=body.title,
        description=body.description,
        thumbnail_path=thumbnail_path,
    )
    owner = await session.get(User, video.owner_id)
    return video_service.video_read(video, owner)


@router.delete("/{videoId}", status_code=204)
async def delete_video(
    videoId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    await video_service.delete_video(session, videoId, auth.user_id)


@router.patch("/{videoId}/publish", response_model=VideoRead)
async def toggle_publish(
    videoId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Flip a video between published and unpublished."""
    video = await video_service.toggle_publish_status(session, videoId, auth.user_id)
    return video_service.video_read(video, auth.user)
