"""
Two-level search cache: in-process first, Redis second.

The local tier trades staleness for latency with a short TTL; the Redis tier
is shared across instances with a longer TTL. Redis failures never surface to
callers: reads degrade to a miss and writes are logged and dropped.
"""

import logging
from typing import Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from .local_cache import LocalCache
from .distributed_cache import RedisCache

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TwoTierCache(Generic[ModelT]):
    """
    Read-through/write-through cache over a LocalCache and a RedisCache.

    Values are pydantic models; the local tier stores the model instance and
    the Redis tier stores its JSON encoding.
    """

    LOCAL_TTL = 300  # 5 minutes
    DISTRIBUTED_TTL = 900  # 15 minutes

    def __init__(
        self,
        local: LocalCache,
        remote: Optional[RedisCache],
        model: Type[ModelT],
        local_ttl: int = LOCAL_TTL,
        distributed_ttl: int = DISTRIBUTED_TTL
    ):
        self.local = local
        self.remote = remote
        self.model = model
        self.local_ttl = local_ttl
        self.distributed_ttl = distributed_ttl

    async def get(self, key: str) -> Tuple[Optional[ModelT], bool]:
        """
        Look up a key in the local tier, then in Redis.

        A Redis hit repopulates the local tier. A local hit makes no network
        call.

        Returns:
            (value, True) on a hit in either tier, (None, False) otherwise
        """
        value, found = self.local.get(key)
        if found:
            logger.debug(f"[CACHE HIT] local key={key}")
            return value, True

        if self.remote is None:
            return None, False

        try:
            raw = await self.remote.get(key)
        except RedisError as e:
            logger.warning(f"[CACHE] Redis get failed, treating as miss: key={key}, error={e}")
            return None, False

        if raw is None:
            logger.debug(f"[CACHE MISS] key={key}")
            return None, False

        try:
            value = self.model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[CACHE] Undecodable Redis entry, treating as miss: key={key}, error={e}")
            return None, False

        self.local.set(key, value, self.local_ttl)
        logger.debug(f"[CACHE HIT] redis key={key}, stored in local cache")
        return value, True

    async def set(self, key: str, value: ModelT, ttl: Optional[int] = None) -> None:
        """
        Write a value to both tiers.

        The local write always happens first. Tier TTLs are fixed; ``ttl`` is
        only the caller's freshness hint and is logged for bookkeeping.
        """
        self.local.set(key, value, self.local_ttl)
        logger.debug(f"[CACHE SET] local key={key}, ttl={self.local_ttl}s, hint={ttl}")

        if self.remote is None:
            return

        try:
            await self.remote.set(key, value.model_dump_json(), self.distributed_ttl)
        except RedisError as e:
            logger.warning(f"[CACHE] Redis set failed: key={key}, error={e}")
            return

        logger.debug(f"[CACHE SET] redis key={key}, ttl={self.distributed_ttl}s")

    async def delete(self, key: str) -> None:
        """Remove a key from both tiers. A Redis miss is not an error."""
        self.local.delete(key)

        if self.remote is None:
            return

        try:
            removed = await self.remote.delete(key)
        except RedisError as e:
            logger.warning(f"[CACHE] Redis delete failed: key={key}, error={e}")
            return

        if not removed:
            logger.debug(f"[CACHE DELETE] redis key={key} (not found)")
