"""Cache services"""

from .local_cache import LocalCache
from .distributed_cache import RedisCache, create_redis_client
from .two_tier_cache import TwoTierCache
from .generation import IndexGeneration

__all__ = [
    "LocalCache",
    "RedisCache",
    "create_redis_client",
    "TwoTierCache",
    "IndexGeneration",
]
