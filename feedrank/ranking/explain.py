"""
Human-readable "why am I seeing this" reasons for ranked items.

Reasons are advisory metadata for display only; nothing here feeds back
into scoring or ordering. Fixed priority order:

  1. From someone you follow
  2. Matches your topics: <up to two topics>
  3. Popular saves           (save count >= threshold)
  4. High engagement         (engagement sub-score > threshold)
"""
from typing import Optional

from feedrank.ranking.scoring import DEFAULT_SCORING, ScoringConfig
from feedrank.ranking.types import RankedItem, ScoredCandidate, as_count

FOLLOWING_REASON = "From someone you follow"
TOPICS_REASON = "Matches your topics: {topics}"
POPULAR_SAVES_REASON = "Popular saves"
HIGH_ENGAGEMENT_REASON = "High engagement"


class ExplanationGenerator:
    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        self.config = config or DEFAULT_SCORING

    def reasons(self, candidate: ScoredCandidate) -> tuple[str, ...]:
        c = self.config
        reasons: list[str] = []
        if candidate.is_following_author:
            reasons.append(FOLLOWING_REASON)
        if candidate.matched_topics:
            topics = ", ".join(candidate.matched_topics[: c.max_reason_topics])
            reasons.append(TOPICS_REASON.format(topics=topics))
        if as_count(candidate.item.save_count) >= c.popular_saves_threshold:
            reasons.append(POPULAR_SAVES_REASON)
        if candidate.boosts.engagement > c.high_engagement_threshold:
            reasons.append(HIGH_ENGAGEMENT_REASON)
        return tuple(reasons)

    def explain(self, candidate: ScoredCandidate) -> RankedItem:
        return RankedItem(candidate=candidate, reasons=self.reasons(candidate))
