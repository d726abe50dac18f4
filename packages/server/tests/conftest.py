"""
Shared fixtures.

Every test gets its own SQLite database file; Redis is replaced by an
in-memory fake and the asset host by an AsyncMock.
"""

from __future__ import annotations

import os
import tempfile

os.environ.setdefault(
    "VH_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'vidhub-test.db')}",
)
os.environ.setdefault("VH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("VH_LOG_FORMAT", "text")

from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402, F401
from app.core.assets import get_asset_host  # noqa: E402
from app.core.database import get_session  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.models.content import Comment, Tweet, Video  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services import credentials  # noqa: E402
from vidhub_shared.schemas.users import RegisterRequest  # noqa: E402

PASSWORD = "correct-horse-1"


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the revocation list."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value

    async def exists(self, key: str) -> int:
        return 1 if key in self.store else 0


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def fake_redis():
    redis = FakeRedis()
    with patch("app.core.auth.get_redis", AsyncMock(return_value=redis)):
        yield redis


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vidhub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def assets():
    host = AsyncMock()
    host.upload = AsyncMock(side_effect=lambda path, folder: f"https://cdn.test/{folder}/asset")
    return host


@pytest.fixture
async def client(session_factory, assets):
    async def _session_override():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _session_override
    fastapi_app.dependency_overrides[get_asset_host] = lambda: assets
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

async def make_user(session: AsyncSession, username: str, password: str = PASSWORD) -> User:
    return await credentials.register(
        session,
        RegisterRequest(
            username=username,
            email=f"{username}@example.com",
            password=password,
            full_name=username.capitalize(),
        ),
    )


async def make_video(
    session: AsyncSession, owner: User, title: str = "A video", is_published: bool = True
) -> Video:
    video = Video(
        owner_id=owner.id,
        title=title,
        description=f"{title} description",
        video_file="https://cdn.test/videos/v.mp4",
        thumbnail="https://cdn.test/thumbnails/t.png",
        duration=12.5,
        is_published=is_published,
    )
    session.add(video)
    await session.flush()
    return video


async def make_comment(
    session: AsyncSession, video: Video, owner: User, content: str, parent: Comment | None = None
) -> Comment:
    comment = Comment(
        video_id=video.id,
        owner_id=owner.id,
        parent_id=parent.id if parent else None,
        content=content,
    )
    session.add(comment)
    await session.flush()
    return comment


async def make_tweet(session: AsyncSession, owner: User, content: str = "hello") -> Tweet:
    tweet = Tweet(owner_id=owner.id, content=content)
    session.add(tweet)
    await session.flush()
    return tweet


async def login_headers(client: AsyncClient, username: str, password: str = PASSWORD) -> dict:
    resp = await client.post("/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
