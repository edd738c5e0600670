import asyncio
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from feedrank import main as main_module
from feedrank.main import app
from feedrank.ranking.engine import FeedEngine
from feedrank.ranking.types import ContentItem, ViewerProfile, utcnow
from feedrank.routers.feed import get_feed_engine
from feedrank.stores.memory import InMemoryContentStore, InMemoryProfileStore


def _items():
    now = utcnow()
    return [
        ContentItem(
            item_id=f"p{i}",
            author_id="author-a" if i == 0 else "author-b",
            created_at=now - timedelta(hours=i + 1),
            visibility="public",
            moderation_status="approved",
            like_count=10 - i,
            save_count=5 if i == 1 else 0,
            tags=("python",) if i == 2 else (),
            title=f"Post {i}",
            post_type="article",
        )
        for i in range(5)
    ] + [
        ContentItem(
            item_id="hidden",
            author_id="author-b",
            created_at=now,
            visibility="private",
            moderation_status="approved",
            like_count=1000,
        )
    ]


@pytest.fixture
def client():
    profiles = [ViewerProfile.build("viewer-1", following=["author-a"], skills=["Python"])]
    engine = FeedEngine(InMemoryContentStore(_items()), InMemoryProfileStore(profiles))
    app.dependency_overrides[get_feed_engine] = lambda: engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_personalized_feed(client):
    resp = client.get("/feed/", params={"viewer_id": "viewer-1", "page": 1, "page_size": 3})
    assert resp.status_code == 200
    body = resp.json()

    assert body["viewer_id"] == "viewer-1"
    assert body["strategy"] == "personalized"
    assert body["degraded"] is False
    assert body["fallback_reason"] is None
    assert body["total_candidates"] == 5
    assert body["has_more"] is True
    assert len(body["items"]) == 3

    top = body["items"][0]
    assert top["post_id"] == "p0"
    assert top["is_following_author"] is True
    assert top["reasons"] == ["From someone you follow"]
    assert top["title"] == "Post 0"
    assert top["type"] == "article"

    ids = [item["post_id"] for item in body["items"]]
    assert "hidden" not in ids
    scores = [item["score"] for item in body["items"]]
    assert scores == sorted(scores, reverse=True)


def test_last_page(client):
    resp = client.get("/feed/", params={"viewer_id": "viewer-1", "page": 2, "page_size": 3})
    body = resp.json()
    assert len(body["items"]) == 2
    assert body["has_more"] is False


def test_unknown_viewer_is_degraded_not_failed(client):
    resp = client.get("/feed/", params={"viewer_id": "ghost"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["strategy"] == "fallback"
    assert body["degraded"] is True
    assert body["fallback_reason"] == "viewer_not_found"
    assert all(item["is_following_author"] is False for item in body["items"])


def test_signed_out_feed(client):
    body = client.get("/feed/").json()
    assert body["viewer_id"] is None
    assert body["fallback_reason"] == "anonymous"
    assert body["degraded"] is False
    assert body["page_size"] == 10


@pytest.mark.parametrize(
    "params",
    [
        {"page": 0},
        {"page": -2},
        {"page_size": 0},
        {"page_size": 51},
        {"page": "abc"},
    ],
)
def test_invalid_pagination_is_rejected(client, params):
    resp = client.get("/feed/", params={"viewer_id": "viewer-1", **params})
    assert resp.status_code == 422


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.parametrize("create_tables,expected_calls", [(False, 0), (True, 1)])
def test_startup_creates_tables_only_when_asked(monkeypatch, create_tables, expected_calls):
    calls = []

    async def fake_init_db():
        calls.append(True)

    monkeypatch.setattr(main_module, "init_db", fake_init_db)
    monkeypatch.setattr(main_module.settings, "tidb_create_tables", create_tables)
    monkeypatch.setattr(main_module.settings, "redis_profile_cache_enabled", False)

    async def run():
        async with main_module.lifespan(app):
            pass

    asyncio.run(run())
    assert len(calls) == expected_calls
