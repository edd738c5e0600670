"""
FeedEngine — runs one personalized feed request end to end.

Strategy selection policy:

  1. Pagination is validated first; InvalidPagination aborts before any I/O.
  2. No viewer id                    → FallbackStrategy   (anonymous)
  3. Profile store: ViewerNotFound   → FallbackStrategy   (viewer_not_found, degraded)
  4. Profile store: ProfileUnavailable → FallbackStrategy (profile_unavailable, degraded)
  5. Otherwise                       → PersonalizedStrategy, even when its
                                       candidate set is empty

Every fallback is logged and counted; the returned RankedPage says which
strategy served it and why, so callers can tell a degraded feed apart.
"""
import dataclasses
import logging
from datetime import datetime
from typing import Optional

from feedrank.errors import ProfileUnavailable, ViewerNotFound
from feedrank.ranking.explain import ExplanationGenerator
from feedrank.ranking.profiles import ViewerProfileResolver
from feedrank.ranking.ranker import Pagination, Ranker
from feedrank.ranking.retriever import DEFAULT_CANDIDATE_LIMIT, CandidateRetriever
from feedrank.ranking.scoring import ScoringConfig, ScoringEngine
from feedrank.ranking.strategies import (
    FallbackReason,
    FallbackStrategy,
    PersonalizedStrategy,
)
from feedrank.ranking.types import RankedPage, ViewerProfile, utcnow
from feedrank.ranking.visibility import DEFAULT_VISIBILITY, VisibilityFilter
from feedrank.stores.base import ContentStore, ProfileStore
from feedrank.telemetry import FEED_FALLBACK_TOTAL

logger = logging.getLogger(__name__)


class FeedEngine:
    def __init__(
        self,
        content_store: ContentStore,
        profile_store: ProfileStore,
        config: Optional[ScoringConfig] = None,
        visibility: VisibilityFilter = DEFAULT_VISIBILITY,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        scorer = ScoringEngine(config)
        ranker = Ranker()
        explainer = ExplanationGenerator(scorer.config)
        retriever = CandidateRetriever(content_store, visibility, candidate_limit)

        self.resolver = ViewerProfileResolver(profile_store)
        self.personalized = PersonalizedStrategy(retriever, scorer, ranker, explainer)
        self.fallback = FallbackStrategy(retriever, scorer, ranker, explainer)

    async def rank_feed(
        self,
        viewer_id: Optional[str],
        page: int = 1,
        page_size: int = 10,
        now: Optional[datetime] = None,
    ) -> RankedPage:
        pagination = Pagination(page, page_size)
        now = now or utcnow()

        if viewer_id is None:
            return await self._fall_back(
                ViewerProfile.anonymous(), pagination, now, FallbackReason.ANONYMOUS
            )

        try:
            viewer = await self.resolver.resolve(viewer_id)
        except ViewerNotFound:
            logger.warning("Viewer %s not found — serving unpersonalized feed", viewer_id)
            return await self._fall_back(
                ViewerProfile.anonymous(viewer_id),
                pagination,
                now,
                FallbackReason.VIEWER_NOT_FOUND,
            )
        except ProfileUnavailable as exc:
            logger.warning("%s — serving unpersonalized feed", exc)
            return await self._fall_back(
                ViewerProfile.anonymous(viewer_id),
                pagination,
                now,
                FallbackReason.PROFILE_UNAVAILABLE,
            )

        return await self.personalized.rank(viewer, pagination, now)

    async def _fall_back(
        self,
        viewer: ViewerProfile,
        pagination: Pagination,
        now: datetime,
        reason: FallbackReason,
    ) -> RankedPage:
        FEED_FALLBACK_TOTAL.labels(reason=reason.value).inc()
        result = await self.fallback.rank(viewer, pagination, now)
        return dataclasses.replace(
            result,
            degraded=reason is not FallbackReason.ANONYMOUS,
            fallback_reason=reason.value,
        )
