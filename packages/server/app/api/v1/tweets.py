"""
Tweet endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentAccount, get_current_account, get_optional_account
from app.core.database import get_session
from app.services import tweets as tweet_service
from vidhub_shared.schemas.content import TweetRead, TweetWrite

router = APIRouter()


@router.post("/", response_model=TweetRead, status_code=201)
async def create_tweet(
    body: TweetWrite,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    tweet = await tweet_service.create_tweet(session, auth.user_id, body.content)
    return tweet_service.tweet_read(tweet)


@router.get("/user/{userId}", response_model=List[TweetRead])
async def list_user_tweets(
    userId: str,
    auth: Optional[CurrentAccount] = Depends(get_optional_account),
    session: AsyncSession = Depends(get_session),
):
    return await tweet_service.list_user_tweets(session, userId, auth.user_id if auth else None)


@router.patch("/{tweetId}", response_model=TweetRead)
async def update_tweet(
    tweetId: str,
    body: TweetWrite,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    tweet = await tweet_service.update_tweet(session, tweetId, auth.user_id, body.content)
    return tweet_service.tweet_read(tweet, tweet.like_count)


@router.delete("/{tweetId}", status_code=204)
async def delete_tweet(
    tweetId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    await tweet_service.delete_tweet(session, tweetId, auth.user_id)
