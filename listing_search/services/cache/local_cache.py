"""
Bounded in-process cache with per-entry TTL.

Operations never await, so concurrent request handlers on one event loop see
each operation as atomic.
"""

import time
from collections import OrderedDict
from typing import Any, Callable, Tuple


class LocalCache:
    """
    Least-recently-used cache with per-entry expiry.

    Attributes:
        max_size: Maximum number of live entries kept in memory
    """

    def __init__(
        self,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._clock = clock
        # key -> (expires_at, value), oldest use first
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def get(self, key: str) -> Tuple[Any, bool]:
        """
        Look up a key.

        Returns:
            (value, True) on a live hit, (None, False) on miss or expiry
        """
        entry = self._entries.get(key)
        if entry is None:
            return None, False

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None, False

        self._entries.move_to_end(key)
        return value, True

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value, evicting the least recently used entry when full."""
        self._entries[key] = (self._clock() + ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        _, found = self.get(key)
        return found
