"""
Pydantic response schemas for the API layer.
Kept separate from ranking types to avoid coupling transport to the engine.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from feedrank.ranking.types import RankedItem, RankedPage, as_count, enum_value


# ──────────────────────────── Feed ────────────────────────────────────────

class FeedItem(BaseModel):
    """A ranked post returned in the feed."""
    post_id: str
    author_id: Optional[str]
    created_at: Optional[datetime]
    title: Optional[str] = None
    excerpt: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    tags: list[str] = []
    visibility: Optional[str] = None
    like_count: int = 0
    comment_count: int = 0
    save_count: int = 0
    view_count: int = 0
    # Ranking signals exposed to the presentation layer
    score: float
    reasons: list[str] = []
    is_following_author: bool = False

    @classmethod
    def from_ranked(cls, ranked: RankedItem) -> "FeedItem":
        item = ranked.item
        return cls(
            post_id=str(item.item_id),
            author_id=item.author_id,
            created_at=item.created_at,
            title=item.title,
            excerpt=item.excerpt,
            type=item.post_type,
            category=item.category,
            difficulty=item.difficulty,
            tags=list(item.tags),
            visibility=enum_value(item.visibility),
            like_count=int(as_count(item.like_count)),
            comment_count=int(as_count(item.comment_count)),
            save_count=int(as_count(item.save_count)),
            view_count=int(as_count(item.view_count)),
            score=ranked.score,
            reasons=list(ranked.reasons),
            is_following_author=ranked.is_following_author,
        )


class FeedResponse(BaseModel):
    viewer_id: Optional[str]
    page: int
    page_size: int
    has_more: bool
    items: list[FeedItem]
    # Metadata describing how the page was produced
    total_candidates: int
    strategy: str                       # 'personalized' | 'fallback'
    degraded: bool
    fallback_reason: Optional[str]
    latency_ms: float

    @classmethod
    def from_page(
        cls,
        viewer_id: Optional[str],
        page: RankedPage,
        latency_ms: float,
    ) -> "FeedResponse":
        return cls(
            viewer_id=viewer_id,
            page=page.page,
            page_size=page.page_size,
            has_more=page.has_more,
            items=[FeedItem.from_ranked(r) for r in page.items],
            total_candidates=page.total_candidates,
            strategy=page.strategy,
            degraded=page.degraded,
            fallback_reason=page.fallback_reason,
            latency_ms=round(latency_ms, 2),
        )
