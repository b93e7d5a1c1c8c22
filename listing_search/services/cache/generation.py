"""
Index generation counter used to invalidate cached searches.

Every successful index mutation bumps the generation. Search fingerprints
embed the current generation, so entries written before a mutation are never
read again and age out through their TTL.
"""

import logging
import time
from typing import Callable, Optional

from redis.exceptions import RedisError

from .distributed_cache import RedisCache

logger = logging.getLogger(__name__)


class IndexGeneration:
    """
    Generation counter shared through Redis and mirrored in process.

    The local mirror is authoritative for this instance: a local bump takes
    effect immediately and the mirror never moves backwards. The shared value
    is re-read at most once per ``refresh_seconds``, so mutations made by other
    instances become visible within that interval and a read served from the
    local cache tier needs no network call.

    Any change in the shared value since the last observation advances the
    mirror, including a drop caused by a Redis flush, so another instance's
    bump is noticed even when the shared counter has been reset below the
    local value. While Redis is unreachable, other instances' mutations go
    unnoticed until it returns or local entries expire.
    """

    KEY = "search:generation"
    REFRESH_SECONDS = 2.0

    def __init__(
        self,
        remote: Optional[RedisCache] = None,
        key: str = KEY,
        refresh_seconds: float = REFRESH_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.remote = remote
        self.key = key
        self.refresh_seconds = refresh_seconds
        self._clock = clock
        self._local = 0
        self._last_shared: Optional[int] = None
        self._refreshed_at: Optional[float] = None

    @property
    def local_value(self) -> int:
        return self._local

    def _refresh_due(self) -> bool:
        if self._refreshed_at is None:
            return True
        return self._clock() - self._refreshed_at >= self.refresh_seconds

    def _observe(self, shared: int) -> None:
        if self._last_shared is not None and shared != self._last_shared:
            self._local = max(self._local + 1, shared)
        else:
            self._local = max(self._local, shared)
        self._last_shared = shared

    async def current(self) -> int:
        """Return the generation, re-reading the shared value when the refresh interval has passed."""
        if self.remote is None or not self._refresh_due():
            return self._local

        self._refreshed_at = self._clock()
        try:
            shared = await self.remote.get_int(self.key)
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] Could not read index generation, using local value {self._local}: {e}")
            return self._local

        self._observe(shared)
        return self._local

    async def bump(self) -> int:
        """Advance the generation after an index mutation."""
        self._local += 1

        if self.remote is not None:
            try:
                shared = await self.remote.incr(self.key)
            except RedisError as e:
                logger.warning(f"[CACHE] Could not bump shared index generation: {e}")
            else:
                self._local = max(self._local, shared)
                self._last_shared = shared

        logger.info(f"[CACHE] Index generation advanced to {self._local}")
        return self._local
