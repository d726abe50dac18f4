"""
Aggregation engine: rollups and composite, viewer-relative views.

Every rollup is one grouped query over a whole page of ids (never one query
per row), returning a dict keyed by the parent id. Ids absent from the dict
simply have no related rows, so callers default to 0 / False.

Composite views built here:
- threaded comment listing (top-level page + reply previews)
- reply pagination
- channel profile
- channel stats
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy import and_, exists, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import NotFound, ValidationError
from app.core.pagination import PageParams, parse_id
from app.models.content import Comment, Tweet, Video
from app.models.like import Like
from app.models.subscription import Subscription
from app.models.user import User
from app.services.projections import owner_profile
from vidhub_shared.schemas.common import SortOrder, TargetKind
from vidhub_shared.schemas.content import (
    AnnotatedComment,
    AnnotatedReply,
    CommentPage,
    ReplyPage,
)
from vidhub_shared.schemas.users import ChannelProfile, ChannelStats

settings = get_settings()


# ---------------------------------------------------------------------------
# Rollups
# ---------------------------------------------------------------------------


async def like_counts(
    session: AsyncSession, kind: TargetKind, ids: Sequence[uuid.UUID]
) -> dict[uuid.UUID, int]:
    """Number of Like rows per target id."""
    if not ids:
        return {}
    result = await session.execute(
        select(Like.target_id, func.count(Like.id))
        .where(Like.target_kind == kind.value, Like.target_id.in_(ids))
        .group_by(Like.target_id)
    )
    return {target_id: count for target_id, count in result.all()}


async def liked_by_viewer(
    session: AsyncSession,
    kind: TargetKind,
    ids: Sequence[uuid.UUID],
    viewer_id: Optional[uuid.UUID],
) -> set[uuid.UUID]:
    """Subset of ``ids`` the viewer has liked. Anonymous viewers like nothing."""
    if not ids or viewer_id is None:
        return set()
    result = await session.execute(
        select(Like.target_id).where(
            Like.target_kind == kind.value,
            Like.target_id.in_(ids),
            Like.actor_id == viewer_id,
        )
    )
    return set(result.scalars().all())


async def reply_counts(
    session: AsyncSession, parent_ids: Sequence[uuid.UUID]
) -> dict[uuid.UUID, int]:
    if not parent_ids:
        return {}
    result = await session.execute(
        select(Comment.parent_id, func.count(Comment.id))
        .where(Comment.parent_id.in_(parent_ids))
        .group_by(Comment.parent_id)
    )
    return {parent_id: count for parent_id, count in result.all()}


async def reply_previews(
    session: AsyncSession, parent_ids: Sequence[uuid.UUID], limit: int
) -> dict[uuid.UUID, list[tuple[Comment, Optional[User]]]]:
    """The ``limit`` most recent replies of each parent, newest first."""
    if not parent_ids or limit <= 0:
        return {}
    ranked = (
        select(
            Comment.id.label("id"),
            func.row_number()
            .over(
                partition_by=Comment.parent_id,
                order_by=(Comment.created_at.desc(), Comment.seq.desc()),
            )
            .label("rn"),
        )
        .where(Comment.parent_id.in_(parent_ids))
        .subquery()
    )
    result = await session.execute(
        select(Comment, User)
        .join(ranked, ranked.c.id == Comment.id)
        .outerjoin(User, User.id == Comment.owner_id)
        .where(ranked.c.rn <= limit)
        .order_by(Comment.parent_id, Comment.created_at.desc(), Comment.seq.desc())
    )
    previews: dict[uuid.UUID, list[tuple[Comment, Optional[User]]]] = defaultdict(list)
    for comment, owner in result.all():
        previews[comment.parent_id].append((comment, owner))
    return previews


def _annotate_reply(
    comment: Comment,
    owner: Optional[User],
    counts: dict[uuid.UUID, int],
    liked: set[uuid.UUID],
) -> AnnotatedReply:
    return AnnotatedReply(
        id=comment.id,
        content=comment.content,
        created_at=comment.created_at,
        owner=owner_profile(owner),
        like_count=counts.get(comment.id, 0),
        is_liked=comment.id in liked,
    )


# ---------------------------------------------------------------------------
# Comment threads
# ---------------------------------------------------------------------------


async def _visible_video(
    session: AsyncSession, video_id: uuid.UUID, viewer_id: Optional[uuid.UUID]
) -> Video:
    video = await session.get(Video, video_id)
    if not video or (not video.is_published and video.owner_id != viewer_id):
        raise NotFound("Video not found")
    return video


async def list_comments(
    session: AsyncSession,
    video_id: str | uuid.UUID,
    viewer_id: Optional[uuid.UUID],
    params: PageParams,
    order: SortOrder = SortOrder.DESC,
) -> CommentPage:
    """Top-level comments of a video, each annotated with owner, likes and a reply preview."""
    vid = parse_id(video_id, "video")
    await _visible_video(session, vid, viewer_id)

    top_level = and_(Comment.video_id == vid, Comment.parent_id.is_(None))
    total = (
        await session.execute(select(func.count(Comment.id)).where(top_level))
    ).scalar_one()

    if order == SortOrder.ASC:
        ordering = (Comment.created_at.asc(), Comment.seq.asc(), Comment.id.asc())
    else:
        ordering = (Comment.created_at.desc(), Comment.seq.desc(), Comment.id.desc())

    result = await session.execute(
        select(Comment, User)
        .outerjoin(User, User.id == Comment.owner_id)
        .where(top_level)
        .order_by(*ordering)
        .offset(params.offset)
        .limit(params.page_size)
    )
    rows = result.all()
    ids = [comment.id for comment, _ in rows]

    previews = await reply_previews(session, ids, settings.reply_preview_size)
    preview_ids = [reply.id for replies in previews.values() for reply, _ in replies]
    all_ids = ids + preview_ids

    counts = await like_counts(session, TargetKind.COMMENT, all_ids)
    liked = await liked_by_viewer(session, TargetKind.COMMENT, all_ids, viewer_id)
    n_replies = await reply_counts(session, ids)

    data = []
    for comment, owner in rows:
        base = _annotate_reply(comment, owner, counts, liked)
        data.append(
            AnnotatedComment(
                **base.model_dump(),
                reply_count=n_replies.get(comment.id, 0),
                replies=[
                    _annotate_reply(reply, reply_owner, counts, liked)
                    for reply, reply_owner in previews.get(comment.id, [])
                ],
            )
        )

    return CommentPage(data=data, pagination=params.describe(total))


async def list_replies(
    session: AsyncSession,
    parent_id: str | uuid.UUID,
    params: PageParams,
    viewer_id: Optional[uuid.UUID] = None,
) -> ReplyPage:
    """Replies of a comment, newest first, paginated independently of the preview."""
    pid = parse_id(parent_id, "comment")
    parent = await session.get(Comment, pid)
    if not parent:
        raise NotFound("Comment not found")
    await _visible_video(session, parent.video_id, viewer_id)

    total = (
        await session.execute(select(func.count(Comment.id)).where(Comment.parent_id == pid))
    ).scalar_one()

    result = await session.execute(
        select(Comment, User)
        .outerjoin(User, User.id == Comment.owner_id)
        .where(Comment.parent_id == pid)
        .order_by(Comment.created_at.desc(), Comment.seq.desc(), Comment.id.desc())
        .offset(params.offset)
        .limit(params.page_size)
    )
    rows = result.all()
    ids = [comment.id for comment, _ in rows]
    counts = await like_counts(session, TargetKind.COMMENT, ids)
    liked = await liked_by_viewer(session, TargetKind.COMMENT, ids, viewer_id)

    return ReplyPage(
        data=[_annotate_reply(c, owner, counts, liked) for c, owner in rows],
        pagination=params.describe(total),
    )


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


async def get_channel_profile(
    session: AsyncSession, username: str, viewer_id: Optional[uuid.UUID]
) -> ChannelProfile:
    """Resolve a channel by username and roll up its subscription edges in one query."""
    uname = (username or "").strip().lower()
    if not uname:
        raise ValidationError("Username is required")

    subscriber_count = (
        select(func.count(Subscription.id))
        .where(Subscription.channel_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(Subscription.id))
        .where(Subscription.subscriber_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    # Anonymous viewers compare against no id, so the EXISTS is simply false.
    is_subscribed = (
        exists()
        .where(
            Subscription.channel_id == User.id,
            Subscription.subscriber_id == viewer_id,
        )
        .correlate(User)
        if viewer_id is not None
        else sa.false()
    )

    result = await session.execute(
        select(
            User,
            subscriber_count.label("subscriber_count"),
            subscribed_to_count.label("subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(User.username == uname)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Channel does not exist")

    user, n_subscribers, n_subscribed, flag = row

    return ChannelProfile(
        id=user.id,
        full_name=user.full_name,
        username=user.username,
        subscriber_count=n_subscribers or 0,
        subscribed_to_count=n_subscribed or 0,
        is_subscribed=bool(flag),
        avatar=user.avatar,
        cover_image=user.cover_image,
        email=user.email,
    )


async def get_channel_stats(session: AsyncSession, account_id: str | uuid.UUID) -> ChannelStats:
    """Video, subscriber and tweet counts for an account; zeros when it has none."""
    uid = parse_id(account_id, "user")
    if not await session.get(User, uid):
        raise NotFound("User not found")

    videos = await session.execute(select(func.count(Video.id)).where(Video.owner_id == uid))
    subscribers = await session.execute(
        select(func.count(Subscription.id)).where(Subscription.channel_id == uid)
    )
    tweets = await session.execute(select(func.count(Tweet.id)).where(Tweet.owner_id == uid))

    return ChannelStats(
        video_count=videos.scalar_one() or 0,
        subscriber_count=subscribers.scalar_one() or 0,
        tweet_count=tweets.scalar_one() or 0,
    )
