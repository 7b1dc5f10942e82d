"""Shared redis.asyncio client for the round store (STORAGE_BACKEND=redis).

Created on first use by ``RedisKeyValueBackend`` and closed by the app
lifespan. With the in-memory backend it is never created.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger("dd.storage")

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        # Round records are JSON text; decode so the store sees str, not bytes.
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("redis client created for %s", settings.REDIS_URL.rsplit("@", 1)[-1])
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
