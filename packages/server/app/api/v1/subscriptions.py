"""
Subscription endpoints.

POST   /api/v1/subscriptions/c/{channelId}   — Toggle subscription
GET    /api/v1/subscriptions/c/{channelId}   — Subscribers of a channel
GET    /api/v1/subscriptions/u/{userId}      — Channels an account subscribes to
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentAccount, get_current_account
from app.core.database import get_session
from app.services import subscriptions as subscription_service
from vidhub_shared.schemas.users import SubscriptionList, ToggleResponse

router = APIRouter()


@router.post("/c/{channelId}", response_model=ToggleResponse)
async def toggle_subscription(
    channelId: str,
    auth: CurrentAccount = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    result = await subscription_service.toggle_subscription(session, auth.user_id, channelId)
    return ToggleResponse(active=result.active, count=result.count)


@router.get("/c/{channelId}", response_model=SubscriptionList)
async def channel_subscribers(
    channelId: str,
    session: AsyncSession = Depends(get_session),
):
    return await subscription_service.list_channel_subscribers(session, channelId)


@router.get("/u/{userId}", response_model=SubscriptionList)
async def subscribed_channels(
    userId: str,
    session: AsyncSession = Depends(get_session),
):
    return await subscription_service.list_subscribed_channels(session, userId)
