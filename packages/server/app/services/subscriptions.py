"""
Channel subscriptions: toggle plus both directions of the edge listing.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import InvalidOperation, NotFound
from app.core.pagination import parse_id
from app.models.subscription import Subscription
from app.models.user import User
from app.services.projections import owner_profile
from app.services.toggles import CachedCounter, ToggleResult, toggle
from vidhub_shared.schemas.users import SubscriptionEntry, SubscriptionList


async def toggle_subscription(
    session: AsyncSession, subscriber_id: uuid.UUID, raw_channel_id: str | uuid.UUID
) -> ToggleResult:
    """Subscribe to or unsubscribe from a channel. Self-subscription is always rejected."""
    channel_id = parse_id(raw_channel_id, "channel")
    if channel_id == subscriber_id:
        raise InvalidOperation("You cannot subscribe to your own channel")
    if not await session.get(User, channel_id):
        raise NotFound("Channel not found")

    return await toggle(
        session,
        Subscription,
        {"subscriber_id": subscriber_id, "channel_id": channel_id},
        counter=CachedCounter(User, channel_id, "subscriber_count"),
    )


async def list_channel_subscribers(
    session: AsyncSession, raw_channel_id: str | uuid.UUID
) -> SubscriptionList:
    channel_id = parse_id(raw_channel_id, "channel")
    if not await session.get(User, channel_id):
        raise NotFound("Channel not found")

    result = await session.execute(
        select(Subscription, User)
        .join(User, User.id == Subscription.subscriber_id)
        .where(Subscription.channel_id == channel_id)
        .order_by(Subscription.created_at.desc(), Subscription.id)
    )
    return SubscriptionList(
        data=[
            SubscriptionEntry(account=owner_profile(user), subscribed_at=sub.created_at)
            for sub, user in result.all()
        ]
    )


async def list_subscribed_channels(
    session: AsyncSession, raw_subscriber_id: str | uuid.UUID
) -> SubscriptionList:
    subscriber_id = parse_id(raw_subscriber_id, "subscriber")
    if not await session.get(User, subscriber_id):
        raise NotFound("User not found")

    result = await session.execute(
        select(Subscription, User)
        .join(User, User.id == Subscription.channel_id)
        .where(Subscription.subscriber_id == subscriber_id)
        .order_by(Subscription.created_at.desc(), Subscription.id)
    )
    return SubscriptionList(
        data=[
            SubscriptionEntry(account=owner_profile(user), subscribed_at=sub.created_at)
            for sub, user in result.all()
        ]
    )
