"""
Candidate retrieval — the bounded working set the scorer sees.

Only the newest `limit` visible items (default 200) are considered. Older
content never gets scored; that trade keeps per-request cost flat no matter
how much history the store holds.

The store applies the visibility predicate inside its own query. Whatever
comes back is checked against the same filter again: rejected items are
dropped and logged, so a misbehaving store cannot leak content into a feed.
"""
import logging

from feedrank.ranking.types import ContentItem, ViewerProfile, newest_first
from feedrank.ranking.visibility import DEFAULT_VISIBILITY, VisibilityFilter
from feedrank.stores.base import ContentStore

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 200


class CandidateRetriever:
    def __init__(
        self,
        store: ContentStore,
        visibility: VisibilityFilter = DEFAULT_VISIBILITY,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        if limit < 1:
            raise ValueError(f"candidate limit must be >= 1, got {limit}")
        self.store = store
        self.visibility = visibility
        self.limit = limit

    async def retrieve(self, viewer: ViewerProfile) -> list[ContentItem]:
        items = await self.store.fetch_recent_visible_approved(
            viewer, self.visibility, self.limit
        )

        seen: set[str] = set()
        candidates: list[ContentItem] = []
        for item in items:
            if not self.visibility.allows(item, viewer):
                logger.warning(
                    "Store returned item %s not visible to viewer %s — dropped",
                    item.item_id,
                    viewer.viewer_id,
                )
                continue
            if item.item_id in seen:
                continue
            seen.add(item.item_id)
            candidates.append(item)

        candidates.sort(key=newest_first)
        return candidates[: self.limit]
