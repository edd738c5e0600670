"""
Candidate scoring.

Score formula (all terms additive, all arithmetic in float):

  engagement = 2 * likes + 3 * comments + 5 * saves + 0.1 * views
  recency    = max(0, 48 - max(1, age_hours))     linear decay, 0 after 48h
  topic      = 12 * |item.tags ∩ viewer.topic_interests|
  social     = 40 if the viewer follows the author
  saved      = 15 if the viewer saved the item

  score      = engagement + recency + topic + social + saved

Engagement is the only unbounded term: saves outweigh comments, comments
outweigh likes, raw views count least. The personalization boosts are flat
bonuses, so they can lift an item but never cancel out its engagement.

Weights and thresholds live in ScoringConfig so variants can be configured
without touching the pipeline. Equal scores are left to the Ranker.
"""
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from feedrank.ranking.types import (
    Boosts,
    ContentItem,
    ScoredCandidate,
    ViewerProfile,
    as_count,
    normalise_tags,
    timestamp,
)


class ScoringConfig(BaseModel):
    # ── Engagement weights ─────────────────────────────────────────────────
    like_weight: float = 2.0
    comment_weight: float = 3.0
    save_weight: float = 5.0
    view_weight: float = 0.1

    # ── Recency ────────────────────────────────────────────────────────────
    recency_window_hours: float = 48.0
    min_age_hours: float = 1.0

    # ── Personalization boosts ─────────────────────────────────────────────
    topic_boost: float = 12.0          # per matched topic
    social_boost: float = 40.0
    saved_boost: float = 15.0

    # ── Explanation thresholds ─────────────────────────────────────────────
    popular_saves_threshold: int = 5
    high_engagement_threshold: float = 20.0
    max_reason_topics: int = 2

    model_config = ConfigDict(frozen=True)


DEFAULT_SCORING = ScoringConfig()


class ScoringEngine:
    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        self.config = config or DEFAULT_SCORING

    def engagement(self, item: ContentItem) -> float:
        c = self.config
        return (
            as_count(item.like_count) * c.like_weight
            + as_count(item.comment_count) * c.comment_weight
            + as_count(item.save_count) * c.save_weight
            + as_count(item.view_count) * c.view_weight
        )

    def recency(self, created_at: Optional[datetime], now: datetime) -> float:
        """Linear decay from (window - min_age) down to exactly 0 at the window."""
        created_ts = timestamp(created_at)
        if created_ts is None:
            return 0.0
        hours_ago = max(self.config.min_age_hours, (timestamp(now) - created_ts) / 3600)
        return max(0.0, self.config.recency_window_hours - hours_ago)

    def score(
        self,
        item: ContentItem,
        viewer: ViewerProfile,
        now: datetime,
    ) -> ScoredCandidate:
        c = self.config
        matched = tuple(t for t in normalise_tags(item.tags) if t in viewer.topic_interests)
        following = item.author_id is not None and str(item.author_id) in viewer.followed_authors
        saved = str(item.item_id) in viewer.saved_items

        boosts = Boosts(
            engagement=self.engagement(item),
            recency=self.recency(item.created_at, now),
            topic=len(matched) * c.topic_boost,
            social=c.social_boost if following else 0.0,
            saved=c.saved_boost if saved else 0.0,
        )
        return ScoredCandidate(
            item=item,
            score=boosts.total,
            boosts=boosts,
            is_following_author=following,
            matched_topics=matched,
        )

    def score_all(
        self,
        items: Iterable[ContentItem],
        viewer: ViewerProfile,
        now: datetime,
    ) -> list[ScoredCandidate]:
        return [self.score(item, viewer, now) for item in items]
