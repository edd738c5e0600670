"""
Redis client wrapper.

Responsibilities:
  • Viewer profile cache — STRING (JSON) keyed by vp:{viewer_id}
                           value = ViewerProfile.to_dict() snapshot
                           TTL   = settings.redis_profile_ttl

Read by CachedProfileStore in front of the SQL profile store.
"""
import json
import logging
from typing import Optional

import redis.asyncio as aioredis

from feedrank.config import settings

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global _redis
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    await _redis.ping()
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def redis_ready() -> bool:
    return _redis is not None


def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialised — call init_redis() at startup")
    return _redis


# ─────────────────────── Viewer Profile Cache ─────────────────────────────

def _profile_key(viewer_id: str) -> str:
    return f"vp:{viewer_id}"


async def get_viewer_profile(viewer_id: str) -> Optional[dict]:
    r = get_redis()
    raw = await r.get(_profile_key(viewer_id))
    if raw:
        return json.loads(raw)
    return None


async def set_viewer_profile(viewer_id: str, snapshot: dict, ttl: Optional[int] = None) -> None:
    r = get_redis()
    await r.set(
        _profile_key(viewer_id),
        json.dumps(snapshot),
        ex=ttl or settings.redis_profile_ttl,
    )
