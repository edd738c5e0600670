"""
Viewer profile resolution — the first stage of every feed request.
"""
import logging
from typing import Optional

from feedrank.ranking.types import ViewerProfile
from feedrank.stores.base import ProfileStore

logger = logging.getLogger(__name__)


class ViewerProfileResolver:
    def __init__(self, store: ProfileStore) -> None:
        self.store = store

    async def resolve(self, viewer_id: Optional[str]) -> ViewerProfile:
        """
        Load the personalization snapshot for `viewer_id`.

        No id means a signed-out viewer and yields an anonymous profile
        without touching the store. ViewerNotFound and ProfileUnavailable
        from the store propagate to the caller, which picks the fallback.
        """
        if viewer_id is None:
            return ViewerProfile.anonymous()

        profile = await self.store.fetch_viewer_profile(viewer_id)
        logger.debug(
            "Resolved viewer %s: %d follows, %d topics, %d saved",
            viewer_id,
            len(profile.followed_authors),
            len(profile.topic_interests),
            len(profile.saved_items),
        )
        return profile
