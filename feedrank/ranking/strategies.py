"""
Ranking strategies — the two tiers a feed request can be served by.

  PersonalizedStrategy  all five signals, using the viewer's profile
  FallbackStrategy      engagement + recency only (empty profile)

Both share one pipeline: retrieve → score → sort → slice → explain.
Retrieval is the only I/O and happens first; everything after it is
synchronous and side-effect free. Which tier runs is decided by FeedEngine.
"""
import time
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Optional

from opentelemetry import trace

from feedrank.ranking.explain import ExplanationGenerator
from feedrank.ranking.ranker import Pagination, Ranker
from feedrank.ranking.retriever import CandidateRetriever
from feedrank.ranking.scoring import ScoringEngine
from feedrank.ranking.types import ContentItem, RankedPage, ViewerProfile
from feedrank.telemetry import FEED_CANDIDATES_TOTAL, SCORING_LATENCY

tracer = trace.get_tracer(__name__)


class FallbackReason(str, Enum):
    ANONYMOUS = "anonymous"
    VIEWER_NOT_FOUND = "viewer_not_found"
    PROFILE_UNAVAILABLE = "profile_unavailable"


class RankingStrategy(ABC):
    name = "base"

    def __init__(
        self,
        retriever: CandidateRetriever,
        scorer: ScoringEngine,
        ranker: Optional[Ranker] = None,
        explainer: Optional[ExplanationGenerator] = None,
    ) -> None:
        self.retriever = retriever
        self.scorer = scorer
        self.ranker = ranker or Ranker()
        self.explainer = explainer or ExplanationGenerator(scorer.config)

    @abstractmethod
    def signals_for(self, viewer: ViewerProfile) -> ViewerProfile:
        """The profile whose signals feed the scorer."""

    async def rank(
        self,
        viewer: ViewerProfile,
        pagination: Pagination,
        now: datetime,
    ) -> RankedPage:
        with tracer.start_as_current_span(f"{self.name}.retrieve") as span:
            items = await self.retriever.retrieve(viewer)
            span.set_attribute("candidates.count", len(items))

        FEED_CANDIDATES_TOTAL.labels(strategy=self.name).inc(len(items))
        return self.rank_items(items, viewer, pagination, now)

    def rank_items(
        self,
        items: list[ContentItem],
        viewer: ViewerProfile,
        pagination: Pagination,
        now: datetime,
    ) -> RankedPage:
        with tracer.start_as_current_span(f"{self.name}.score") as span:
            t0 = time.perf_counter()

            scored = self.scorer.score_all(items, self.signals_for(viewer), now)
            ranked = self.ranker.rank(scored)
            window = self.ranker.paginate(ranked, pagination)
            page_items = tuple(self.explainer.explain(c) for c in window)

            latency = time.perf_counter() - t0
            SCORING_LATENCY.observe(latency)
            span.set_attribute("ranking.latency_ms", round(latency * 1000, 2))
            span.set_attribute("page.items", len(page_items))

        return RankedPage(
            page=pagination.page,
            page_size=pagination.page_size,
            items=page_items,
            total_candidates=len(ranked),
            strategy=self.name,
        )


class PersonalizedStrategy(RankingStrategy):
    name = "personalized"

    def signals_for(self, viewer: ViewerProfile) -> ViewerProfile:
        return viewer


class FallbackStrategy(RankingStrategy):
    """
    Unpersonalized ranking. Visibility is still resolved for the viewer id,
    so authors keep seeing their own private or pending posts.
    """

    name = "fallback"

    def signals_for(self, viewer: ViewerProfile) -> ViewerProfile:
        return ViewerProfile.anonymous(viewer.viewer_id)
