"""
Visibility and moderation rules for feed candidates.

A VisibilityFilter is a plain value: a tuple of AudienceRules (OR-ed) and a
ModerationGate (AND-ed with them). The same value is evaluated two ways:

  allows(item, viewer)        — in Python, per candidate
  where_clause(model, viewer) — compiled into a SQLAlchemy expression so the
                                content store applies the identical predicate
                                inside its retrieval query

Default rules:
  public     → everyone
  private    → the author only
  followers  → the author and viewers who follow the author
  moderation → approved, or the author looking at their own work

Anything with a missing visibility, status or author id matches nothing.
"""
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import and_, false, or_

from feedrank.ranking.types import (
    ContentItem,
    ModerationStatus,
    ViewerProfile,
    Visibility,
    enum_value,
)


class Audience(str, Enum):
    EVERYONE = "everyone"
    AUTHOR = "author"
    FOLLOWERS = "followers"   # followed authors + the viewer


def _is_author(item: ContentItem, viewer: ViewerProfile) -> bool:
    return (
        viewer.viewer_id is not None
        and item.author_id is not None
        and str(item.author_id) == viewer.viewer_id
    )


@dataclass(frozen=True)
class AudienceRule:
    """Grants access to items of one visibility tier to one audience."""

    visibility: Visibility
    audience: Audience

    def matches(self, item: ContentItem, viewer: ViewerProfile) -> bool:
        if enum_value(item.visibility) != self.visibility.value:
            return False
        if self.audience is Audience.EVERYONE:
            return True
        if _is_author(item, viewer):
            return True
        if self.audience is Audience.FOLLOWERS:
            return item.author_id is not None and str(item.author_id) in viewer.followed_authors
        return False

    def clause(self, model, viewer: ViewerProfile):
        tier = model.visibility == self.visibility.value
        if self.audience is Audience.EVERYONE:
            return tier
        if viewer.viewer_id is None:
            return false()
        if self.audience is Audience.AUTHOR:
            return and_(tier, model.author_id == viewer.viewer_id)
        audience = sorted({viewer.viewer_id, *viewer.followed_authors})
        return and_(tier, model.author_id.in_(audience))


@dataclass(frozen=True)
class ModerationGate:
    allowed: frozenset[str] = frozenset({ModerationStatus.APPROVED.value})
    authors_see_own: bool = True

    def admits(self, item: ContentItem, viewer: ViewerProfile) -> bool:
        if enum_value(item.moderation_status) in self.allowed:
            return True
        return self.authors_see_own and _is_author(item, viewer)

    def clause(self, model, viewer: ViewerProfile):
        approved = model.moderation_status.in_(sorted(self.allowed))
        if self.authors_see_own and viewer.viewer_id is not None:
            return or_(approved, model.author_id == viewer.viewer_id)
        return approved


DEFAULT_RULES: tuple[AudienceRule, ...] = (
    AudienceRule(Visibility.PUBLIC, Audience.EVERYONE),
    AudienceRule(Visibility.PRIVATE, Audience.AUTHOR),
    AudienceRule(Visibility.FOLLOWERS, Audience.FOLLOWERS),
)


@dataclass(frozen=True)
class VisibilityFilter:
    rules: tuple[AudienceRule, ...] = DEFAULT_RULES
    gate: ModerationGate = ModerationGate()

    def allows(self, item: ContentItem, viewer: ViewerProfile) -> bool:
        if not self.gate.admits(item, viewer):
            return False
        return any(rule.matches(item, viewer) for rule in self.rules)

    def where_clause(self, model, viewer: ViewerProfile):
        """
        SQLAlchemy boolean expression equivalent to allows().

        `model` must expose `visibility`, `moderation_status` and `author_id`
        columns. NULL columns compare false, which keeps the SQL side as
        fail-closed as the Python side.
        """
        if not self.rules:
            return false()
        audience = or_(*(rule.clause(model, viewer) for rule in self.rules))
        return and_(audience, self.gate.clause(model, viewer))


DEFAULT_VISIBILITY = VisibilityFilter()
