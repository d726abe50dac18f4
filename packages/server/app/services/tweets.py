"""Short text posts owned by an account."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.pagination import parse_id
from app.models.content import Tweet
from app.models.like import Like
from app.models.user import User
from app.services.aggregation import like_counts, liked_by_viewer
from vidhub_shared.schemas.common import TargetKind
from vidhub_shared.schemas.content import TweetRead

log = structlog.get_logger()


def tweet_read(tweet: Tweet, like_count: int = 0, is_liked: bool = False) -> TweetRead:
    return TweetRead(
        id=tweet.id,
        owner_id=tweet.owner_id,
        content=tweet.content,
        like_count=like_count,
        is_liked=is_liked,
        created_at=tweet.created_at,
        updated_at=tweet.updated_at,
    )


def _clean_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Content is required")
    return text


async def _owned_tweet(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID
) -> Tweet:
    tweet = await session.get(Tweet, parse_id(raw_id, "tweet"))
    if not tweet:
        raise NotFound("Tweet not found")
    if tweet.owner_id != owner_id:
        raise Forbidden("You can only modify your own tweets")
    return tweet


async def create_tweet(session: AsyncSession, owner_id: uuid.UUID, content: Optional[str]) -> Tweet:
    tweet = Tweet(owner_id=owner_id, content=_clean_content(content))
    session.add(tweet)
    await session.flush()
    await session.refresh(tweet)
    log.info("tweet.created", tweet_id=str(tweet.id), owner_id=str(owner_id))
    return tweet


async def list_user_tweets(
    session: AsyncSession, raw_user_id: str | uuid.UUID, viewer_id: Optional[uuid.UUID]
) -> list[TweetRead]:
    """An account's tweets, newest first, with like counts and the viewer's flag."""
    user_id = parse_id(raw_user_id, "user")
    if not await session.get(User, user_id):
        raise NotFound("User not found")

    result = await session.execute(
        select(Tweet)
        .where(Tweet.owner_id == user_id)
        .order_by(Tweet.created_at.desc(), Tweet.id)
    )
    tweets = list(result.scalars().all())
    ids = [t.id for t in tweets]
    counts = await like_counts(session, TargetKind.TWEET, ids)
    liked = await liked_by_viewer(session, TargetKind.TWEET, ids, viewer_id)
    return [tweet_read(t, counts.get(t.id, 0), t.id in liked) for t in tweets]


async def update_tweet(
    session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID, content: Optional[str]
) -> Tweet:
    tweet = await _owned_tweet(session, raw_id, owner_id)
    tweet.content = _clean_content(content)
    session.add(tweet)
    await session.flush()
    await session.refresh(tweet)
    return tweet


async def delete_tweet(session: AsyncSession, raw_id: str | uuid.UUID, owner_id: uuid.UUID) -> None:
    tweet = await _owned_tweet(session, raw_id, owner_id)
    await session.execute(
        delete(Like).where(Like.target_kind == TargetKind.TWEET.value, Like.target_id == tweet.id)
    )
    await session.delete(tweet)
    await session.flush()
    log.info("tweet.deleted", tweet_id=str(tweet.id))
