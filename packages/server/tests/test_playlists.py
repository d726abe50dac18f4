"""
Tests for playlists: ordering, idempotent membership and ownership.
"""

from __future__ import annotations

import pytest

from app.core.errors import Forbidden, NotFound, ValidationError
from app.services import playlists as playlist_service

from conftest import login_headers, make_user, make_video


class TestPlaylists:
    async def test_videos_keep_insertion_order(self, session):
        alice = await make_user(session, "alice")
        videos = [await make_video(session, alice, title) for title in ("x", "y", "z")]
        playlist = await playlist_service.create_playlist(session, alice.id, "Mix", "songs")

        for video in (videos[2], videos[0], videos[1]):
            detail = await playlist_service.add_video_to_playlist(
                session, str(playlist.id), str(video.id), alice.id
            )
        assert [v.title for v in detail.videos] == ["z", "x", "y"]
        assert detail.video_count == 3

    async def test_adding_twice_is_a_no_op(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        playlist = await playlist_service.create_playlist(session, alice.id, "Mix", "songs")

        await playlist_service.add_video_to_playlist(session, playlist.id, video.id, alice.id)
        detail = await playlist_service.add_video_to_playlist(session, playlist.id, video.id, alice.id)
        assert detail.video_count == 1

    async def test_remove_and_readd_goes_to_the_end(self, session):
        alice = await make_user(session, "alice")
        a = await make_video(session, alice, "a")
        b = await make_video(session, alice, "b")
        playlist = await playlist_service.create_playlist(session, alice.id, "Mix", "songs")
        await playlist_service.add_video_to_playlist(session, playlist.id, a.id, alice.id)
        await playlist_service.add_video_to_playlist(session, playlist.id, b.id, alice.id)

        removed = await playlist_service.remove_video_from_playlist(session, playlist.id, a.id, alice.id)
        assert [v.title for v in removed.videos] == ["b"]

        readded = await playlist_service.add_video_to_playlist(session, playlist.id, a.id, alice.id)
        assert [v.title for v in readded.videos] == ["b", "a"]

    async def test_others_unpublished_videos_are_hidden(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        draft = await make_video(session, alice, "draft", is_published=False)
        playlist = await playlist_service.create_playlist(session, alice.id, "Mine", "drafts")
        await playlist_service.add_video_to_playlist(session, playlist.id, draft.id, alice.id)

        assert (await playlist_service.get_playlist(session, playlist.id, alice.id)).video_count == 1
        assert (await playlist_service.get_playlist(session, playlist.id, bob.id)).videos == []

        bobs = await playlist_service.create_playlist(session, bob.id, "Bob", "stolen")
        with pytest.raises(NotFound):
            await playlist_service.add_video_to_playlist(session, bobs.id, draft.id, bob.id)

    async def test_ownership_and_validation(self, session):
        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        video = await make_video(session, alice)
        playlist = await playlist_service.create_playlist(session, alice.id, "Mix", "songs")

        with pytest.raises(Forbidden):
            await playlist_service.add_video_to_playlist(session, playlist.id, video.id, bob.id)
        with pytest.raises(Forbidden):
            await playlist_service.delete_playlist(session, playlist.id, bob.id)
        with pytest.raises(ValidationError):
            await playlist_service.create_playlist(session, alice.id, " ", "desc")

        renamed = await playlist_service.update_playlist(session, playlist.id, alice.id, "Renamed", "d")
        assert renamed.name == "Renamed"

    async def test_listing_counts_and_delete(self, session):
        alice = await make_user(session, "alice")
        video = await make_video(session, alice)
        full = await playlist_service.create_playlist(session, alice.id, "Full", "one video")
        await playlist_service.create_playlist(session, alice.id, "Empty", "nothing")
        await playlist_service.add_video_to_playlist(session, full.id, video.id, alice.id)

        listed = await playlist_service.list_user_playlists(session, str(alice.id))
        assert {p.name: p.video_count for p in listed} == {"Full": 1, "Empty": 0}

        await playlist_service.delete_playlist(session, full.id, alice.id)
        with pytest.raises(NotFound):
            await playlist_service.get_playlist(session, full.id)


class TestPlaylistEndpoints:
    async def test_create_add_and_get(self, client, session_factory):
        async with session_factory() as s:
            alice = await make_user(s, "alice")
            video = await make_video(s, alice)
            await s.commit()
        headers = await login_headers(client, "alice")

        created = await client.post(
            "/api/v1/playlists/", json={"name": "Mix", "description": "songs"}, headers=headers
        )
        assert created.status_code == 201
        playlist_id = created.json()["id"]

        added = await client.patch(f"/api/v1/playlists/add/{video.id}/{playlist_id}", headers=headers)
        assert added.status_code == 200
        assert added.json()["video_count"] == 1

        public = await client.get(f"/api/v1/playlists/{playlist_id}")
        assert [v["id"] for v in public.json()["videos"]] == [str(video.id)]
