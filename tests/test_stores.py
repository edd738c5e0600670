import asyncio
from datetime import datetime, timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from feedrank.clients import redis_client
from feedrank.database import Base
from feedrank.errors import ProfileUnavailable, ViewerNotFound
from feedrank.models import Bookmark, Follow, Post, User
from feedrank.ranking.types import ViewerProfile
from feedrank.ranking.visibility import DEFAULT_VISIBILITY
from feedrank.stores.cached import CachedProfileStore
from feedrank.stores.memory import InMemoryProfileStore
from feedrank.stores.sql import SqlContentStore, SqlProfileStore, post_to_item

BASE = datetime(2026, 10, 19, 12, 0)

# (post_id, author, visibility, moderation_status, hours_ago)
POSTS = [
    ("p1", "b", "public", "approved", 1),
    ("p2", "b", "private", "approved", 2),
    ("p3", "v", "private", "pending", 3),
    ("p4", "a", "followers", "approved", 4),
    ("p5", "b", "followers", "approved", 5),
    ("p6", "b", "public", "pending", 6),
    ("p7", "v", "public", "rejected", 7),
    ("p8", "v", "followers", "approved", 8),
    ("p9", "b", None, "approved", 9),
    ("p10", "a", "public", None, 10),
]


async def _seed(session):
    session.add_all([
        User(
            user_id="v",
            username="viewer",
            skills=["Python", "FastAPI"],
            expertise=[{"topic": "Databases", "level": "expert"}, {"level": "novice"}],
        ),
        User(user_id="a", username="followed"),
        User(user_id="b", username="stranger"),
    ])
    await session.flush()
    session.add(Follow(follower_id="v", followee_id="a"))
    for post_id, author, visibility, status, hours_ago in POSTS:
        session.add(Post(
            post_id=post_id,
            author_id=author,
            title=f"Post {post_id}",
            tags=["Python", "SQL"],
            visibility=visibility,
            moderation_status=status,
            like_count=3,
            created_at=BASE - timedelta(hours=hours_ago),
        ))
    await session.flush()
    session.add(Bookmark(user_id="v", post_id="p1"))
    await session.commit()


def _with_session(fn, create_tables=True):
    async def runner():
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        sessions = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with sessions() as session:
                if create_tables:
                    await _seed(session)
                return await fn(session)
        finally:
            await engine.dispose()

    return asyncio.run(runner())


# ─────────────────────────── SQL content store ───────────────────────────

def test_sql_retrieval_applies_visibility_in_query():
    viewer = ViewerProfile.build("v", following=["a"])

    async def fetch(session):
        return await SqlContentStore(session).fetch_recent_visible_approved(
            viewer, DEFAULT_VISIBILITY, 200
        )

    items = _with_session(fetch)
    assert [i.item_id for i in items] == ["p1", "p3", "p4", "p7", "p8"]


def test_sql_clause_agrees_with_python_filter():
    viewers = [
        ViewerProfile.build("v", following=["a"]),
        ViewerProfile.build("b"),
        ViewerProfile.anonymous(),
    ]

    async def compare(session):
        rows = await session.execute(select(Post))
        everything = [post_to_item(p) for p in rows.scalars().all()]
        store = SqlContentStore(session)
        results = []
        for viewer in viewers:
            via_sql = await store.fetch_recent_visible_approved(viewer, DEFAULT_VISIBILITY, 200)
            via_python = [i for i in everything if DEFAULT_VISIBILITY.allows(i, viewer)]
            results.append(({i.item_id for i in via_sql}, {i.item_id for i in via_python}))
        return results

    for via_sql, via_python in _with_session(compare):
        assert via_sql == via_python


def test_sql_retrieval_respects_limit_and_normalises_rows():
    async def fetch(session):
        return await SqlContentStore(session).fetch_recent_visible_approved(
            ViewerProfile.anonymous(), DEFAULT_VISIBILITY, 1
        )

    (item,) = _with_session(fetch)
    assert item.item_id == "p1"
    assert item.tags == ("python", "sql")
    assert item.title == "Post p1"
    assert item.like_count == 3


# ─────────────────────────── SQL profile store ───────────────────────────

def test_sql_profile_store_builds_snapshot():
    async def fetch(session):
        return await SqlProfileStore(session).fetch_viewer_profile("v")

    profile = _with_session(fetch)
    assert profile.viewer_id == "v"
    assert profile.followed_authors == frozenset({"a"})
    assert profile.topic_interests == frozenset({"python", "fastapi", "databases"})
    assert profile.saved_items == frozenset({"p1"})


def test_sql_profile_store_unknown_viewer():
    async def fetch(session):
        return await SqlProfileStore(session).fetch_viewer_profile("nobody")

    with pytest.raises(ViewerNotFound):
        _with_session(fetch)


def test_sql_profile_store_wraps_database_errors():
    async def fetch(session):
        return await SqlProfileStore(session).fetch_viewer_profile("v")

    with pytest.raises(ProfileUnavailable):
        _with_session(fetch, create_tables=False)


# ─────────────────────────── Cached profile store ────────────────────────

class FakeRedis:
    def __init__(self, fail=False):
        self.data = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("redis down")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise RedisConnectionError("redis down")
        self.data[key] = value


class CountingProfileStore(InMemoryProfileStore):
    def __init__(self, profiles=()):
        super().__init__(profiles)
        self.calls = 0

    async def fetch_viewer_profile(self, viewer_id):
        self.calls += 1
        return await super().fetch_viewer_profile(viewer_id)


PROFILE = ViewerProfile.build("v", following=["a"], skills=["python"], saved=["p1"])


def test_cached_store_reads_through_once(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis", fake)
    inner = CountingProfileStore([PROFILE])
    store = CachedProfileStore(inner, ttl=60)

    first = asyncio.run(store.fetch_viewer_profile("v"))
    second = asyncio.run(store.fetch_viewer_profile("v"))

    assert first == second == PROFILE
    assert inner.calls == 1
    assert "vp:v" in fake.data


def test_cached_store_does_not_cache_unknown_viewers(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis", fake)
    store = CachedProfileStore(CountingProfileStore([PROFILE]))

    with pytest.raises(ViewerNotFound):
        asyncio.run(store.fetch_viewer_profile("ghost"))
    assert fake.data == {}


def test_cached_store_bypasses_broken_redis(monkeypatch):
    monkeypatch.setattr(redis_client, "_redis", FakeRedis(fail=True))
    inner = CountingProfileStore([PROFILE])
    store = CachedProfileStore(inner)

    assert asyncio.run(store.fetch_viewer_profile("v")) == PROFILE
    assert asyncio.run(store.fetch_viewer_profile("v")) == PROFILE
    assert inner.calls == 2
