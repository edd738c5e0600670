"""
Collaborator contracts the ranking engine reads from.

The engine owns neither storage nor caching. It only needs:

  ContentStore.fetch_recent_visible_approved(viewer, visibility, limit)
      → newest-first ContentItems the viewer may see, at most `limit`.
        The store must apply `visibility` inside its query.

  ProfileStore.fetch_viewer_profile(viewer_id)
      → ViewerProfile, raising ViewerNotFound / ProfileUnavailable.
"""
from typing import Protocol

from feedrank.ranking.types import ContentItem, ViewerProfile
from feedrank.ranking.visibility import VisibilityFilter


class ContentStore(Protocol):
    async def fetch_recent_visible_approved(
        self,
        viewer: ViewerProfile,
        visibility: VisibilityFilter,
        limit: int,
    ) -> list[ContentItem]:
        ...


class ProfileStore(Protocol):
    async def fetch_viewer_profile(self, viewer_id: str) -> ViewerProfile:
        ...
