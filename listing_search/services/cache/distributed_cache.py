"""
Redis-backed distributed cache shared by every service instance.
"""

import logging
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisCache:
    """
    Thin async wrapper over a Redis client.

    Redis errors propagate to the caller; the two-tier cache decides how to
    degrade.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None on a miss."""
        value = await self.client.get(key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, expire_seconds: int) -> None:
        await self.client.setex(key, expire_seconds, value)

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns False if it did not exist."""
        removed = await self.client.delete(key)
        return bool(removed)

    async def incr(self, key: str) -> int:
        return int(await self.client.incr(key))

    async def get_int(self, key: str) -> int:
        """Read an integer counter; a missing key reads as 0."""
        value = await self.get(key)
        return int(value) if value else 0

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("Redis connection closed")


def create_redis_client(redis_url: str, socket_timeout: float = 2.0) -> redis.Redis:
    """Create a Redis client with bounded socket timeouts."""
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )
