"""
Value types passed between the ranking stages.

  ViewerProfile    — who is asking: follows, topic interests, saved posts
  ContentItem      — one post as read from the content store
  Boosts           — per-signal score contributions
  ScoredCandidate  — ContentItem + score + Boosts
  RankedItem       — ScoredCandidate + human-readable reasons
  RankedPage       — one page of RankedItems + pagination metadata

Every type is a frozen snapshot. Profiles and items are built once per
request from store data; candidates and pages live only for the duration
of a single ranking call.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    FOLLOWERS = "followers"


class ModerationStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


def enum_value(value: Any) -> Any:
    """Return the raw value of an Enum member, or the value unchanged."""
    return value.value if isinstance(value, Enum) else value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp(moment: Optional[datetime]) -> Optional[float]:
    """Unix seconds for a datetime; naive datetimes are taken as UTC."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def as_count(value: Any) -> float:
    """
    Coerce a raw engagement counter into a non-negative number.

    Collections count their members (stores that keep likes as a list of
    user ids). None, negatives, NaN and anything non-numeric count as zero.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (list, tuple, set, frozenset)):
        return float(len(value))
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def normalise_tags(values: Optional[Iterable[Any]]) -> tuple[str, ...]:
    """Lower-case, strip and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values or ():
        if value is None:
            continue
        tag = str(value).strip().lower()
        if tag:
            seen.setdefault(tag, None)
    return tuple(seen)


def _id_set(values: Optional[Iterable[Any]]) -> frozenset[str]:
    return frozenset(str(v) for v in values or () if v is not None and str(v))


# ─────────────────────────── Viewer ───────────────────────────────────────

@dataclass(frozen=True)
class ViewerProfile:
    viewer_id: Optional[str]
    followed_authors: frozenset[str] = frozenset()
    topic_interests: frozenset[str] = frozenset()
    saved_items: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        viewer_id: Optional[str],
        following: Optional[Iterable[Any]] = None,
        skills: Optional[Iterable[Any]] = None,
        expertise_topics: Optional[Iterable[Any]] = None,
        saved: Optional[Iterable[Any]] = None,
    ) -> "ViewerProfile":
        """Topic interests are the union of declared skills and expertise topics."""
        topics = normalise_tags([*(skills or ()), *(expertise_topics or ())])
        return cls(
            viewer_id=viewer_id,
            followed_authors=_id_set(following),
            topic_interests=frozenset(topics),
            saved_items=_id_set(saved),
        )

    @classmethod
    def anonymous(cls, viewer_id: Optional[str] = None) -> "ViewerProfile":
        """A profile with no personalization signals."""
        return cls(viewer_id=viewer_id)

    @property
    def is_anonymous(self) -> bool:
        return self.viewer_id is None

    def to_dict(self) -> dict:
        return {
            "viewer_id": self.viewer_id,
            "followed_authors": sorted(self.followed_authors),
            "topic_interests": sorted(self.topic_interests),
            "saved_items": sorted(self.saved_items),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ViewerProfile":
        return cls(
            viewer_id=data.get("viewer_id"),
            followed_authors=_id_set(data.get("followed_authors")),
            topic_interests=frozenset(normalise_tags(data.get("topic_interests"))),
            saved_items=_id_set(data.get("saved_items")),
        )


# ─────────────────────────── Content ──────────────────────────────────────

@dataclass(frozen=True)
class ContentItem:
    item_id: str
    author_id: Optional[str]
    created_at: Optional[datetime]
    visibility: Optional[str] = None
    moderation_status: Optional[str] = None
    like_count: Any = 0
    comment_count: Any = 0
    save_count: Any = 0
    view_count: Any = 0
    tags: tuple[str, ...] = ()
    # Public display fields, passed through untouched
    title: Optional[str] = None
    excerpt: Optional[str] = None
    post_type: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None

    @property
    def created_ts(self) -> Optional[float]:
        return timestamp(self.created_at)


def newest_first(item: ContentItem) -> tuple:
    """Sort key: newest first, undated items last, then by id."""
    ts = item.created_ts
    return (-ts if ts is not None else math.inf, str(item.item_id))


# ─────────────────────────── Scoring output ───────────────────────────────

@dataclass(frozen=True)
class Boosts:
    engagement: float = 0.0
    recency: float = 0.0
    topic: float = 0.0
    social: float = 0.0
    saved: float = 0.0

    @property
    def total(self) -> float:
        return self.engagement + self.recency + self.topic + self.social + self.saved

    @property
    def base(self) -> float:
        """The unpersonalized part of the score."""
        return self.engagement + self.recency


@dataclass(frozen=True)
class ScoredCandidate:
    item: ContentItem
    score: float
    boosts: Boosts
    is_following_author: bool = False
    matched_topics: tuple[str, ...] = ()


@dataclass(frozen=True)
class RankedItem:
    candidate: ScoredCandidate
    reasons: tuple[str, ...] = ()

    @property
    def item(self) -> ContentItem:
        return self.candidate.item

    @property
    def score(self) -> float:
        return self.candidate.score

    @property
    def is_following_author(self) -> bool:
        return self.candidate.is_following_author


@dataclass(frozen=True)
class RankedPage:
    page: int
    page_size: int
    items: tuple[RankedItem, ...] = ()
    total_candidates: int = 0
    strategy: str = "personalized"
    degraded: bool = False
    fallback_reason: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total_candidates

