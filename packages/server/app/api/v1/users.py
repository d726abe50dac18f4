"""
Account API endpoints.

GET    /api/v1/users/me                    — Current account
PATCH  /api/v1/users/me                    — Update display name / email
PATCH  /api/v1/users/me/avatar             — Upload a new avatar
PATCH  /api/v1/users/me/cover-image        — Upload a new cover image
GET    /api/v1/users/me/history            — Watch history
GET    /api/v1/users/channels/{username}   — Public channel profile
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.assets import AssetHost, get_asset_host, stash_upload
from app.core.auth import CurrentAccount, get_current_account, get_optional_account
from app.core.database import get_session
from app.services import accounts as account_service
from app.services.aggregation import get_channel_profile
from app.services.projections import account_response
from vidhub_shared.schemas.content import WatchHistoryEntry
from vidhub_shared.schemas.users import AccountResponse, AccountUpdateRequest, ChannelProfile

router = APIRouter()


@router.get("/me", response_model=AccountResponse)
async def get_me(auth: CurrentAccount = Depends(get_current_account)):
    return account_response(auth.user)


@router.patch("/me", response_model=AccountResponse)
async def update_me(
    body: AccountUpdateRequest,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    user = await account_service.update_account(
        session,
        auth.user_id,
        full_name=body.full_name,
        email=str(body.email) if body.email is not None else None,
    )
    return account_response(user)


@router.patch("/me/avatar", response_model=AccountResponse)
async def update_avatar(
    avatar: UploadFile = File(...),
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
    assets: AssetHost = Depends(get_asset_host),
):
    path = await stash_upload(avatar)
    user = await account_service.update_avatar(session, assets, auth.user_id, path)
    return account_response(user)


@router.patch("/me/cover-image", response_model=AccountResponse)
async def update_cover_image(
    cover_image: UploadFile = File(...),
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
    assets: AssetHost = Depends(get_asset_host),
):
    path = await stash_upload(cover_image)
    user = await account_service.update_cover_image(session, assets, auth.user_id, path)
    return account_response(user)


@router.get("/me/history", response_model=List[WatchHistoryEntry])
async def watch_history(
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Videos the current account watched, most recent first."""
    return await account_service.list_watch_history(session, auth.user_id)


@router.get("/channels/{username}", response_model=ChannelProfile)
async def channel_profile(
    username: str,
    auth: Optional[CurrentAccount] = Depends(get_optional_account),
    session: AsyncSession = Depends(get_session),
):
    """Public channel profile; ``is_subscribed`` is relative to the caller."""
    return await get_channel_profile(session, username, auth.user_id if auth else None)
