"""
Read-through Redis cache in front of another ProfileStore.

Cache errors never fail a feed request: they are logged and the inner
store is asked directly. ViewerNotFound is not cached.
"""
import logging

from redis.exceptions import RedisError

from feedrank.clients import redis_client
from feedrank.ranking.types import ViewerProfile
from feedrank.stores.base import ProfileStore

logger = logging.getLogger(__name__)


class CachedProfileStore:
    def __init__(self, inner: ProfileStore, ttl: int | None = None) -> None:
        self.inner = inner
        self.ttl = ttl

    async def fetch_viewer_profile(self, viewer_id: str) -> ViewerProfile:
        try:
            cached = await redis_client.get_viewer_profile(viewer_id)
        except (RedisError, ValueError) as exc:
            logger.warning("Profile cache read failed (viewer=%s): %s", viewer_id, exc)
            cached = None

        if cached is not None:
            return ViewerProfile.from_dict(cached)

        profile = await self.inner.fetch_viewer_profile(viewer_id)

        try:
            await redis_client.set_viewer_profile(viewer_id, profile.to_dict(), ttl=self.ttl)
        except RedisError as exc:
            logger.warning("Profile cache write failed (viewer=%s): %s", viewer_id, exc)
        return profile
