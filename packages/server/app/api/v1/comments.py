"""
Comment endpoints.

GET    /api/v1/comments/video/{videoId}         — Threaded top-level comments
POST   /api/v1/comments/video/{videoId}         — Comment or reply
GET    /api/v1/comments/{commentId}/replies     — Page through replies
PATCH  /api/v1/comments/{commentId}             — Edit own comment
DELETE /api/v1/comments/{commentId}             — Delete own comment (and its replies)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentAccount, get_current_account, get_optional_account
from app.core.database import get_session
from app.core.pagination import PageParams, page_params
from app.services import comments as comment_service
from app.services.aggregation import list_comments, list_replies
from vidhub_shared.schemas.common import SortOrder
from vidhub_shared.schemas.content import (
    CommentCreate,
    CommentPage,
    CommentRead,
    CommentUpdate,
    ReplyPage,
)

router = APIRouter()


@router.get("/video/{videoId}", response_model=CommentPage)
async def get_video_comments(
    videoId: str,
    order: SortOrder = SortOrder.DESC,
    params: PageParams = Depends(page_params),
    auth: Optional[CurrentAccount] = Depends(get_optional_account),
    session: AsyncSession = Depends(get_session),
):
    """Top-level comments with owner, like count, viewer flag and a reply preview."""
    return await list_comments(session, videoId, auth.user_id if auth else None, params, order)


@router.post("/video/{videoId}", response_model=CommentRead, status_code=201)
async def add_comment(
    videoId: str,
    body: CommentCreate,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    comment = await comment_service.add_comment(
        session, videoId, auth.user_id, body.content, body.parent_id
    )
    return comment_service.comment_read(comment)


@router.get("/{commentId}/replies", response_model=ReplyPage)
async def get_replies(
    commentId: str,
    params: PageParams = Depends(page_params),
    auth: Optional[CurrentAccount] = Depends(get_optional_account),
    session: AsyncSession = Depends(get_session),
):
    return await list_replies(session, commentId, params, auth.user_id if auth else None)


@router.patch("/{commentId}", response_model=CommentRead)
async def update_comment(
    commentId: str,
    body: CommentUpdate,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    comment = await comment_service.update_comment(session, commentId, auth.user_id, body.content)
    return comment_service.comment_read(comment)


@router.delete("/{commentId}", status_code=204)
async def delete_comment(
    commentId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    await comment_service.delete_comment(session, commentId, auth.user_id)
