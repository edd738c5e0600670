"""
In-process stores over plain Python collections — local runs and tests.
"""
from typing import Iterable

from feedrank.errors import ViewerNotFound
from feedrank.ranking.types import ContentItem, ViewerProfile, newest_first
from feedrank.ranking.visibility import VisibilityFilter


class InMemoryContentStore:
    def __init__(self, items: Iterable[ContentItem] = ()) -> None:
        self._items = list(items)

    async def fetch_recent_visible_approved(
        self,
        viewer: ViewerProfile,
        visibility: VisibilityFilter,
        limit: int,
    ) -> list[ContentItem]:
        visible = [item for item in self._items if visibility.allows(item, viewer)]
        visible.sort(key=newest_first)
        return visible[:limit]


class InMemoryProfileStore:
    def __init__(self, profiles: Iterable[ViewerProfile] = ()) -> None:
        self._profiles = {p.viewer_id: p for p in profiles}

    async def fetch_viewer_profile(self, viewer_id: str) -> ViewerProfile:
        try:
            return self._profiles[viewer_id]
        except KeyError:
            raise ViewerNotFound(viewer_id) from None
