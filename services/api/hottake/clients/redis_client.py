"""
Redis client wrapper.

Redis carries one thing for the take feed: the live-feed pub/sub channel
(settings.broadcast_channel). Every API replica publishes feed events to it
and every replica listens on it, so a subscriber connected to any replica
sees events written through any other.
"""
import logging
from typing import Optional

import redis.asyncio as aioredis

from hottake.config import settings

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    global _redis
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    await _redis.ping()
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
