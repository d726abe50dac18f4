"""
Tests for threaded comment listing, reply paging and comment writes.
"""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest
from sqlmodel import select

from app.core.errors import (
    Forbidden,
    InvalidOperation,
    InvalidReference,
    NotFound,
    ValidationError,
)
from app.core.pagination import PageParams
from app.models.base import insertion_seq
from app.models.content import Comment
from app.models.like import Like
from app.services import comments as comment_service
from app.services.aggregation import list_comments, list_replies
from app.services.likes import toggle_like
from vidhub_shared.schemas.common import SortOrder, TargetKind

from conftest import login_headers, make_comment, make_user, make_video


# ---------------------------------------------------------------------------
# Threaded listing
# ---------------------------------------------------------------------------

class TestListComments:
    async def test_alice_and_bob_thread(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        r1 = await make_comment(session, video, bob, "R1", parent=c1)
        r2 = await make_comment(session, video, bob, "R2", parent=c1)

        page = await list_comments(session, str(video.id), bob.id, PageParams.build(1, 10))

        assert len(page.data) == 1
        top = page.data[0]
        assert top.id == c1.id
        assert top.reply_count == 2
        assert [reply.id for reply in top.replies] == [r2.id, r1.id]
        assert top.owner.username == "alice"
        assert top.replies[0].owner.username == "bob"
        assert page.pagination.total == 1

    async def test_preview_is_capped_at_two(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        replies = [await make_comment(session, video, alice, f"R{i}", parent=c1) for i in range(5)]

        page = await list_comments(session, video.id, None, PageParams.build())
        top = page.data[0]
        assert top.reply_count == 5
        assert [r.id for r in top.replies] == [replies[4].id, replies[3].id]

    async def test_like_annotations_are_viewer_relative(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        r1 = await make_comment(session, video, bob, "R1", parent=c1)
        await toggle_like(session, bob.id, TargetKind.COMMENT, c1.id)
        await toggle_like(session, alice.id, TargetKind.COMMENT, r1.id)

        as_bob = (await list_comments(session, video.id, bob.id, PageParams.build())).data[0]
        assert as_bob.like_count == 1
        assert as_bob.is_liked is True
        assert as_bob.replies[0].like_count == 1
        assert as_bob.replies[0].is_liked is False

        anonymous = (await list_comments(session, video.id, None, PageParams.build())).data[0]
        assert anonymous.is_liked is False
        assert anonymous.replies[0].is_liked is False

    async def test_pagination_is_complete_and_ordered(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        created = [await make_comment(session, video, alice, f"C{i}") for i in range(23)]

        for order, expected in (
            (SortOrder.ASC, [c.id for c in created]),
            (SortOrder.DESC, [c.id for c in reversed(created)]),
        ):
            seen = []
            page_num = 1
            while True:
                page = await list_comments(
                    session, video.id, None, PageParams.build(page_num, 5), order
                )
                if not page.data:
                    break
                seen.extend(item.id for item in page.data)
                page_num += 1
            assert seen == expected
            assert len(set(seen)) == 23
            assert page.pagination.total_pages == 5

    def test_insertion_seq_survives_clock_step_back(self):
        with patch("app.models.base._last_seq", 0), patch(
            "app.models.base.time.time_ns", side_effect=[1000, 5, 5]
        ):
            seqs = [insertion_seq(), insertion_seq(), insertion_seq()]
        assert seqs == [1000, 1001, 1002]

    async def test_replies_are_not_top_level(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        await make_comment(session, video, alice, "R1", parent=c1)
        page = await list_comments(session, video.id, None, PageParams.build())
        assert [c.id for c in page.data] == [c1.id]

    async def test_empty_video_gives_empty_page(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        page = await list_comments(session, video.id, None, PageParams.build())
        assert page.data == []
        assert page.pagination.total == 0
        assert page.pagination.total_pages == 0

    async def test_malformed_video_id(self, session):
        with pytest.raises(InvalidReference):
            await list_comments(session, "123", None, PageParams.build())

    async def test_missing_video(self, session):
        with pytest.raises(NotFound):
            await list_comments(session, str(uuid.uuid4()), None, PageParams.build())

    async def test_unpublished_video_only_for_owner(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice, is_published=False)
        await make_comment(session, video, alice, "note to self")

        assert len((await list_comments(session, video.id, alice.id, PageParams.build())).data) == 1
        with pytest.raises(NotFound):
            await list_comments(session, video.id, bob.id, PageParams.build())


class TestListReplies:
    async def test_pages_past_the_preview(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        replies = [await make_comment(session, video, alice, f"R{i}", parent=c1) for i in range(5)]

        second = await list_replies(session, str(c1.id), PageParams.build(2, 2))
        assert [r.id for r in second.data] == [replies[2].id, replies[1].id]
        assert second.pagination.total == 5
        assert second.pagination.total_pages == 3

    async def test_reply_has_no_replies(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        r1 = await make_comment(session, video, alice, "R1", parent=c1)
        page = await list_replies(session, r1.id, PageParams.build())
        assert page.data == []

    async def test_missing_parent(self, session):
        with pytest.raises(NotFound):
            await list_replies(session, uuid.uuid4(), PageParams.build())

    async def test_unpublished_video_replies_only_for_owner(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice, is_published=False)
        c1 = await make_comment(session, video, alice, "C1")
        await make_comment(session, video, alice, "secret reply", parent=c1)

        own = await list_replies(session, c1.id, PageParams.build(), alice.id)
        assert [r.content for r in own.data] == ["secret reply"]
        with pytest.raises(NotFound):
            await list_replies(session, c1.id, PageParams.build(), bob.id)
        with pytest.raises(NotFound):
            await list_replies(session, c1.id, PageParams.build())


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

class TestCommentWrites:
    async def test_reply_must_target_top_level_comment(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        c1 = await comment_service.add_comment(session, video.id, alice.id, "C1")
        r1 = await comment_service.add_comment(session, video.id, alice.id, "R1", str(c1.id))
        assert r1.parent_id == c1.id

        with pytest.raises(InvalidOperation):
            await comment_service.add_comment(session, video.id, alice.id, "deep", str(r1.id))

    async def test_reply_must_stay_on_the_same_video(self, session):
        alice = await make_user(session, "alice")
        v1 = await make_video(session, alice, "one")
        v2 = await make_video(session, alice, "two")
        c1 = await make_comment(session, v1, alice, "C1")
        with pytest.raises(InvalidOperation):
            await comment_service.add_comment(session, v2.id, alice.id, "cross", str(c1.id))

    async def test_blank_content_rejected(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        with pytest.raises(ValidationError):
            await comment_service.add_comment(session, video.id, alice.id, "   ")

    async def test_only_owner_can_edit_or_delete(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")

        with pytest.raises(Forbidden):
            await comment_service.update_comment(session, c1.id, bob.id, "hijack")
        with pytest.raises(Forbidden):
            await comment_service.delete_comment(session, c1.id, bob.id)

        edited = await comment_service.update_comment(session, c1.id, alice.id, "edited")
        assert edited.content == "edited"

    async def test_deleting_top_level_removes_replies_and_likes(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice)
        c1 = await make_comment(session, video, alice, "C1")
        r1 = await make_comment(session, video, bob, "R1", parent=c1)
        await toggle_like(session, bob.id, TargetKind.COMMENT, r1.id)

        await comment_service.delete_comment(session, c1.id, alice.id)

        assert (await session.execute(select(Comment))).scalars().all() == []
        assert (await session.execute(select(Like))).scalars().all() == []


class TestCommentEndpoints:
    async def test_post_and_list_over_http(self, client, session_factory):
        async with session_factory() as s:
            alice = await make_user(s, "alice")
            await make_user(s, "bob")
            video = await make_video(s, alice)
            await s.commit()

        alice_headers = await login_headers(client, "alice")
        bob_headers = await login_headers(client, "bob")

        c1 = await client.post(
            f"/api/v1/comments/video/{video.id}", json={"content": "C1"}, headers=alice_headers
        )
        assert c1.status_code == 201
        c1_id = c1.json()["id"]
        for text in ("R1", "R2"):
            resp = await client.post(
                f"/api/v1/comments/video/{video.id}",
                json={"content": text, "parent_id": c1_id},
                headers=bob_headers,
            )
            assert resp.status_code == 201

        listing = await client.get(
            f"/api/v1/comments/video/{video.id}?page=1&limit=10", headers=bob_headers
        )
        assert listing.status_code == 200
        body = listing.json()
        assert body["pagination"] == {"page": 1, "per_page": 10, "total": 1, "total_pages": 1}
        assert body["data"][0]["reply_count"] == 2
        assert [r["content"] for r in body["data"][0]["replies"]] == ["R2", "R1"]

    async def test_limit_is_clamped(self, client, session_factory):
        async with session_factory() as s:
            alice = await make_user(s, "alice")
            video = await make_video(s, alice)
            await s.commit()
        resp = await client.get(f"/api/v1/comments/video/{video.id}?page=-3&limit=100000")
        assert resp.status_code == 200
        assert resp.json()["pagination"]["page"] == 1
        assert resp.json()["pagination"]["per_page"] == 100

    async def test_editing_someone_elses_comment_is_forbidden(self, client, session_factory):
        async with session_factory() as s:
            alice = await make_user(s, "alice")
            await make_user(s, "bob")
            video = await make_video(s, alice)
            c1 = await make_comment(s, video, alice, "C1")
            await s.commit()
        headers = await login_headers(client, "bob")
        resp = await client.patch(
            f"/api/v1/comments/{c1.id}", json={"content": "mine now"}, headers=headers
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"
