"""
Shared redis.asyncio client.

Holds the official-rate cache (``official_rate:{base}:{target}``); the
scheduled jobs open their own client per event loop.
"""

import redis.asyncio as aioredis

from app.config import settings

redis = aioredis.from_url(
    settings.REDIS_URL,
    decode_responses=True,
)


async def get_redis() -> aioredis.Redis:
    """FastAPI dependency for the official-rate cache client."""
    return redis
