"""
Playlist endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentAccount, get_current_account, get_optional_account
from app.core.database import get_session
from app.services import playlists as playlist_service
from vidhub_shared.schemas.content import PlaylistDetail, PlaylistRead, PlaylistWrite

router = APIRouter()


@router.post("/", response_model=PlaylistRead, status_code=201)
async def create_playlist(
    body: PlaylistWrite,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await playlist_service.create_playlist(session, auth.user_id, body.name, body.description)


@router.get("/user/{userId}", response_model=List[PlaylistRead])
async def list_user_playlists(
    userId: str,
    session: AsyncSession = Depends(get_session),
):
    return await playlist_service.list_user_playlists(session, userId)


@router.get("/{playlistId}", response_model=PlaylistDetail)
async def get_playlist(
    playlistId: str,
    auth: Optional[CurrentAccount] = Depends(get_optional_account),
    session: AsyncSession = Depends(get_session),
):
    return await playlist_service.get_playlist(session, playlistId, auth.user_id if auth else None)


@router.patch("/{playlistId}", response_model=PlaylistRead)
async def update_playlist(
    playlistId: str,
    body: PlaylistWrite,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await playlist_service.update_playlist(
        session, playlistId, auth.user_id, body.name, body.description
    )


@router.delete("/{playlistId}", status_code=204)
async def delete_playlist(
    playlistId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    await playlist_service.delete_playlist(session, playlistId, auth.user_id)


@router.patch("/add/{videoId}/{playlistId}", response_model=PlaylistDetail)
async def add_video(
    videoId: str,
    playlistId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await playlist_service.add_video_to_playlist(session, playlistId, videoId, auth.user_id)


@router.patch("/remove/{videoId}/{playlistId}", response_model=PlaylistDetail)
async def remove_video(
    videoId: str,
    playlistId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await playlist_service.remove_video_from_playlist(
        session, playlistId, videoId, auth.user_id
    )
