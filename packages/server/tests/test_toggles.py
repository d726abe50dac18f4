"""
Tests for the toggle engine, likes and subscriptions.

Covers:
- Odd/even toggle sequences and the returned ``active`` flag
- Like count conservation across many actors
- Duplicate suppression when a concurrent request wins the insert
- Self-subscription rejection
- Counter reconciliation
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, update
from sqlmodel import select

from app.core.errors import InvalidOperation, InvalidReference, NotFound
from app.models.content import Video
from app.models.like import Like
from app.models.subscription import Subscription
from app.models.user import User
from app.services import toggles
from app.services.counters import reconcile_counters
from app.services.likes import list_liked_videos, toggle_like
from app.services.subscriptions import (
    list_channel_subscribers,
    list_subscribed_channels,
    toggle_subscription,
)
from vidhub_shared.schemas.common import TargetKind

from conftest import login_headers, make_comment, make_tweet, make_user, make_video


async def _like_rows(session, target_id) -> int:
    result = await session.execute(select(func.count(Like.id)).where(Like.target_id == target_id))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------

class TestLikeToggle:
    async def test_carol_likes_then_unlikes(self, session):
        owner = await make_user(session, "owner")
        carol = await make_user(session, "carol")
        video = await make_video(session, owner)

        first = await toggle_like(session, carol.id, TargetKind.VIDEO, str(video.id))
        assert first.active is True
        assert first.count == 1

        second = await toggle_like(session, carol.id, TargetKind.VIDEO, str(video.id))
        assert second.active is False
        assert second.count == 0
        assert await _like_rows(session, video.id) == 0

    @pytest.mark.parametrize("times", [1, 2, 3, 4, 7])
    async def test_parity_decides_presence(self, session, times):
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        video = await make_video(session, owner)

        result = None
        for _ in range(times):
            result = await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)

        present = await _like_rows(session, video.id) == 1
        assert result.active is present
        assert present is (times % 2 == 1)

    async def test_count_conservation_across_actors(self, session):
        owner = await make_user(session, "owner")
        video = await make_video(session, owner)
        fans = [await make_user(session, f"fan{i}") for i in range(6)]

        for fan in fans:
            await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)
        # two of them change their mind
        await toggle_like(session, fans[0].id, TargetKind.VIDEO, video.id)
        last = await toggle_like(session, fans[3].id, TargetKind.VIDEO, video.id)

        assert last.count == 4
        await session.refresh(video)
        assert video.like_count == await _like_rows(session, video.id) == 4

    async def test_comment_and_tweet_targets(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        comment = await make_comment(session, video, alice, "first")
        tweet = await make_tweet(session, alice)

        assert (await toggle_like(session, alice.id, TargetKind.COMMENT, comment.id)).active
        assert (await toggle_like(session, alice.id, TargetKind.TWEET, tweet.id)).active

        kinds = (await session.execute(select(Like.target_kind))).scalars().all()
        assert sorted(kinds) == ["comment", "tweet"]

    async def test_same_id_different_kind_is_a_different_target(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        comment = await make_comment(session, video, alice, "first")

        await toggle_like(session, alice.id, TargetKind.COMMENT, comment.id)
        result = await toggle_like(session, alice.id, TargetKind.VIDEO, video.id)
        assert result.active is True
        assert await _like_rows(session, comment.id) == 1

    async def test_malformed_id_is_invalid_reference(self, session):
        alice = await make_user(session, "alice")
        with pytest.raises(InvalidReference):
            await toggle_like(session, alice.id, TargetKind.VIDEO, "not-an-id")

    async def test_missing_target_is_not_found(self, session):
        alice = await make_user(session, "alice")
        with pytest.raises(NotFound):
            await toggle_like(session, alice.id, TargetKind.TWEET, uuid.uuid4())

    async def test_unpublished_video_hidden_from_others(self, session):
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        video = await make_video(session, owner, is_published=False)
        with pytest.raises(NotFound):
            await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)

    async def test_comments_on_unpublished_video_hidden_from_others(self, session):
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        video = await make_video(session, owner, is_published=False)
        comment = await make_comment(session, video, owner, "draft notes")

        with pytest.raises(NotFound):
            await toggle_like(session, fan.id, TargetKind.COMMENT, comment.id)
        assert await _like_rows(session, comment.id) == 0

        own = await toggle_like(session, owner.id, TargetKind.COMMENT, comment.id)
        assert own.active is True

    async def test_concurrent_duplicate_is_suppressed(self, session):
        """The delete saw nothing, then a competing request inserted first."""
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        video = await make_video(session, owner)
        await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)

        with patch.object(toggles, "_delete_present", AsyncMock(return_value=False)):
            result = await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)

        assert result.active is True
        assert result.count == 1
        assert await _like_rows(session, video.id) == 1

    async def test_decrement_never_goes_negative(self, session):
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        video = await make_video(session, owner)
        await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)
        await session.execute(update(Video).where(Video.id == video.id).values(like_count=0))

        result = await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)
        assert result.active is False
        assert result.count == 0


class TestLikedVideos:
    async def test_newest_like_first_with_owner(self, session):
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        v1 = await make_video(session, owner, "one")
        v2 = await make_video(session, owner, "two")
        await toggle_like(session, fan.id, TargetKind.VIDEO, v1.id)
        await toggle_like(session, fan.id, TargetKind.VIDEO, v2.id)

        liked = await list_liked_videos(session, fan.id)
        assert [item.video.title for item in liked] == ["two", "one"]
        assert liked[0].video.owner.username == "owner"

    async def test_ignores_non_video_likes(self, session):
        owner = await make_user(session, "owner")
        video = await make_video(session, owner)
        tweet = await make_tweet(session, owner)
        await toggle_like(session, owner.id, TargetKind.TWEET, tweet.id)
        await toggle_like(session, owner.id, TargetKind.VIDEO, video.id)
        assert len(await list_liked_videos(session, owner.id)) == 1

    async def test_empty_is_not_an_error(self, session):
        fan = await make_user(session, "fan")
        assert await list_liked_videos(session, fan.id) == []


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

class TestSubscriptionToggle:
    async def test_subscribe_and_unsubscribe(self, session):
        dave = await make_user(session, "dave")
        eve = await make_user(session, "eve")

        on = await toggle_subscription(session, eve.id, str(dave.id))
        assert on.active is True
        assert on.count == 1

        off = await toggle_subscription(session, eve.id, str(dave.id))
        assert off.active is False
        assert off.count == 0

    async def test_self_subscription_always_rejected(self, session):
        dave = await make_user(session, "dave")
        for _ in range(2):
            with pytest.raises(InvalidOperation):
                await toggle_subscription(session, dave.id, str(dave.id))
        rows = (await session.execute(select(func.count(Subscription.id)))).scalar_one()
        assert rows == 0

    async def test_unknown_channel_is_not_found(self, session):
        eve = await make_user(session, "eve")
        with pytest.raises(NotFound):
            await toggle_subscription(session, eve.id, str(uuid.uuid4()))

    async def test_listings_both_directions(self, session):
        dave = await make_user(session, "dave")
        eve = await make_user(session, "eve")
        frank = await make_user(session, "frank")
        await toggle_subscription(session, eve.id, dave.id)
        await toggle_subscription(session, frank.id, dave.id)

        subscribers = await list_channel_subscribers(session, str(dave.id))
        assert {e.account.username for e in subscribers.data} == {"eve", "frank"}

        channels = await list_subscribed_channels(session, str(eve.id))
        assert [e.account.username for e in channels.data] == ["dave"]

        assert (await list_subscribed_channels(session, str(dave.id))).data == []


# ---------------------------------------------------------------------------
# Counter reconciliation
# ---------------------------------------------------------------------------

class TestReconcileCounters:
    async def test_repairs_drifted_counters(self, session):
        owner = await make_user(session, "owner")
        fan = await make_user(session, "fan")
        video = await make_video(session, owner)
        await toggle_like(session, fan.id, TargetKind.VIDEO, video.id)
        await toggle_subscription(session, fan.id, owner.id)

        await session.execute(update(Video).where(Video.id == video.id).values(like_count=42))
        await session.execute(update(User).where(User.id == owner.id).values(subscriber_count=0))

        report = await reconcile_counters(session)
        assert report.repaired["videos"] == 1
        assert report.repaired["users"] == 1

        await session.refresh(video)
        await session.refresh(owner)
        assert video.like_count == 1
        assert owner.subscriber_count == 1

        again = await reconcile_counters(session)
        assert again.total == 0


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class TestToggleEndpoints:
    async def test_like_and_subscribe_over_http(self, client, session_factory):
        async with session_factory() as s:
            dave = await make_user(s, "dave")
            await make_user(s, "eve")
            video = await make_video(s, dave)
            await s.commit()

        headers = await login_headers(client, "eve")
        like = await client.post(f"/api/v1/likes/toggle/v/{video.id}", headers=headers)
        assert like.status_code == 200
        assert like.json() == {"active": True, "count": 1}

        sub = await client.post(f"/api/v1/subscriptions/c/{dave.id}", headers=headers)
        assert sub.json()["active"] is True

        liked = await client.get("/api/v1/likes/videos", headers=headers)
        assert [item["video"]["id"] for item in liked.json()] == [str(video.id)]

    async def test_self_subscription_over_http(self, client, session_factory):
        async with session_factory() as s:
            dave = await make_user(s, "dave")
            await s.commit()
        headers = await login_headers(client, "dave")
        resp = await client.post(f"/api/v1/subscriptions/c/{dave.id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_OPERATION"

    async def test_malformed_id_over_http(self, client, session_factory):
        async with session_factory() as s:
            await make_user(s, "eve")
            await s.commit()
        headers = await login_headers(client, "eve")
        resp = await client.post("/api/v1/likes/toggle/c/xyz", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_REFERENCE"
