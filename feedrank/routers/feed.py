"""
Feed retrieval endpoint — GET /feed?viewer_id=<id>&page=<n>&page_size=<n>

Runs the ranking pipeline for one viewer:

  Stage 1 │ Profile resolution
  ────────┼──────────────────────────────────────────────────────────────
          │  follows, topic interests (skills + expertise), saved posts
          │  Redis snapshot cache in front of TiDB when Redis is up.

  Stage 2 │ Candidate retrieval
  ────────┼──────────────────────────────────────────────────────────────
          │  ≤ candidate_limit newest posts the viewer may see; visibility
          │  and moderation are part of the SQL query.

  Stage 3 │ Scoring, ordering, pagination, explanations
  ────────┼──────────────────────────────────────────────────────────────
          │  engagement + recency + topic + social + saved,
          │  score desc / created desc, offset pagination, reason strings.

Unknown viewers and profile-store outages get the unpersonalized feed; the
response's `degraded` / `fallback_reason` fields say so.
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from feedrank.clients.redis_client import redis_ready
from feedrank.config import settings
from feedrank.database import get_db
from feedrank.errors import InvalidPagination
from feedrank.ranking.engine import FeedEngine
from feedrank.schemas import FeedResponse
from feedrank.stores.cached import CachedProfileStore
from feedrank.stores.sql import SqlContentStore, SqlProfileStore
from feedrank.telemetry import FEED_LATENCY

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


async def get_feed_engine(db: AsyncSession = Depends(get_db)) -> FeedEngine:
    """FastAPI dependency wiring the engine to per-request stores."""
    profiles = SqlProfileStore(db)
    if settings.redis_profile_cache_enabled and redis_ready():
        profiles = CachedProfileStore(profiles, ttl=settings.redis_profile_ttl)
    return FeedEngine(
        SqlContentStore(db),
        profiles,
        config=settings.scoring,
        candidate_limit=settings.candidate_limit,
    )


@router.get("/", response_model=FeedResponse)
async def get_feed(
    viewer_id: Optional[str] = Query(None, description="ID of the requesting user; omit for a signed-out feed"),
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(
        settings.default_page_size,
        le=settings.max_page_size,
        description="Items per page",
    ),
    engine: FeedEngine = Depends(get_feed_engine),
):
    start_time = time.time()

    with tracer.start_as_current_span("get_feed") as span:
        span.set_attribute("viewer.id", viewer_id or "")
        span.set_attribute("feed.page", page)
        span.set_attribute("feed.page_size", page_size)

        try:
            ranked = await engine.rank_feed(viewer_id, page=page, page_size=page_size)
        except InvalidPagination as exc:
            raise HTTPException(status_code=422, detail=str(exc))

        latency_ms = (time.time() - start_time) * 1000
        FEED_LATENCY.observe(latency_ms / 1000)
        span.set_attribute("feed.strategy", ranked.strategy)
        span.set_attribute("feed.degraded", ranked.degraded)
        span.set_attribute("feed.posts_returned", len(ranked.items))
        span.set_attribute("feed.latency_ms", latency_ms)

        logger.info(
            "Feed for %s: page=%d size=%d strategy=%s returned=%d/%d",
            viewer_id,
            page,
            page_size,
            ranked.strategy,
            len(ranked.items),
            ranked.total_candidates,
        )
        return FeedResponse.from_page(viewer_id, ranked, latency_ms)
