"""
Comment writes. Threaded reads live in ``app.services.aggregation``.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden, InvalidOperation, NotFound, ValidationError
from app.core.pagination import parse_id
from app.models.content import Comment, Video
from app.models.like import Like
from vidhub_shared.schemas.common import TargetKind
from vidhub_shared.schemas.content import CommentRead

log = structlog.get_logger()


def comment_read(comment: Comment) -> CommentRead:
    return CommentRead(
        id=comment.id,
        video_id=comment.video_id,
        parent_id=comment.parent_id,
        owner_id=comment.owner_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def _clean_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Content is required")
    return text


async def _owned_comment(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> Comment:
    comment = await session.get(Comment, parse_id(raw_id, "comment"))
    if not comment:
        raise NotFound("Comment not found")
    if comment.owner_id != owner_id:
        raise Forbidden("You can only modify your own comments")
    return comment


async def add_comment(
    session: AsyncSession,
    raw_video_id: str | uuid.UUID,
    owner_id: uuid.UUID,
    content: Optional[str],
    raw_parent_id: Optional[str] = None,
) -> Comment:
    """Post a top-level comment, or a reply when ``raw_parent_id`` is given.

    Threads are two levels deep: a reply must target a top-level comment on
    the same video.
    """
    video_id = parse_id(raw_video_id, "video")
    text = _clean_content(content)

    video = await session.get(Video, video_id)
    if not video or (not video.is_published and video.owner_id != owner_id):
        raise NotFound("Video not found")

    parent_id = None
    if raw_parent_id:
        parent = await session.get(Comment, parse_id(raw_parent_id, "comment"))
        if not parent:
            raise NotFound("Comment not found")
        if parent.video_id != video_id or parent.parent_id is not None:
            raise InvalidOperation("Replies must target a top-level comment on the same video")
        parent_id = parent.id

    comment = Comment(video_id=video_id, owner_id=owner_id, parent_id=parent_id, content=text)
    session.add(comment)
    await session.flush()
    await session.refresh(comment)

    log.info(
        "comment.created",
        comment_id=str(comment.id),
        video_id=str(video_id),
        is_reply=parent_id is not None,
    )
    return comment


async def update_comment(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID, content: Optional[str]
) -> Comment:
    comment = await _owned_comment(session, raw_id, owner_id)
    comment.content = _clean_content(content)
    session.add(comment)
    await session.flush()
    await session.refresh(comment)
    return comment


async def delete_comment(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> None:
    """Delete a comment; a top-level comment takes its replies and their likes with it."""
    comment = await _owned_comment(session, raw_id, owner_id)

    doomed = [comment.id]
    if comment.parent_id is None:
        replies = await session.execute(
            select(Comment.id).where(Comment.parent_id == comment.id)
        )
        doomed.extend(replies.scalars().all())

    await session.execute(
        delete(Like).where(
            Like.target_kind == TargetKind.COMMENT.value, Like.target_id.in_(doomed)
        )
    )
    await session.execute(
        delete(Comment)
        .where(Comment.parent_id == comment.id)
        .execution_options(synchronize_session=False)
    )
    await session.delete(comment)
    await session.flush()
    log.info("comment.deleted", comment_id=str(comment.id), replies=len(doomed) - 1)
