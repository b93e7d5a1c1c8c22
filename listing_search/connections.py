"""
Connection handles for the search engine, canonical store and Redis.

Handles are created once at startup, passed explicitly to the components that
use them, and released at shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp
from redis.exceptions import RedisError

from listing_search.config import Settings
from listing_search.models import CachedSearchPage
from listing_search.services.cache import (
    IndexGeneration,
    LocalCache,
    RedisCache,
    TwoTierCache,
    create_redis_client,
)
from listing_search.services.catalog import CatalogClient
from listing_search.services.search import SearchService
from listing_search.services.solr import SolrClient

logger = logging.getLogger(__name__)


@dataclass
class ServiceConnections:
    """Handles owned by one running service instance"""
    http_session: aiohttp.ClientSession
    redis_cache: Optional[RedisCache]
    search_service: SearchService


async def open_connections(settings: Settings) -> ServiceConnections:
    """Create clients and wire them into a SearchService."""
    http_session = aiohttp.ClientSession()

    redis_cache = RedisCache(
        create_redis_client(settings.cache.redis_url, settings.cache.socket_timeout_seconds)
    )
    try:
        await redis_cache.ping()
        logger.info("Redis connection established")
    except RedisError as e:
        # Cache unavailability only costs latency; searches fall through to Solr
        logger.warning(f"Redis unreachable at startup, continuing without a warm distributed cache: {e}")

    solr = SolrClient(settings.solr.url, http_session, settings.solr.timeout_seconds)
    if await solr.ping():
        logger.info(f"Solr reachable at {settings.solr.url}")

    cache = TwoTierCache(
        LocalCache(max_size=settings.cache.local_max_size),
        redis_cache,
        CachedSearchPage,
        local_ttl=settings.cache.local_ttl_seconds,
        distributed_ttl=settings.cache.distributed_ttl_seconds,
    )
    catalog = CatalogClient(settings.catalog.url, http_session, settings.catalog.timeout_seconds)

    service = SearchService(
        engine=solr,
        cache=cache,
        catalog=catalog,
        generation=IndexGeneration(
            redis_cache,
            refresh_seconds=settings.cache.generation_refresh_seconds,
        ),
    )
    logger.info("Search service initialized")

    return ServiceConnections(
        http_session=http_session,
        redis_cache=redis_cache,
        search_service=service,
    )


async def close_connections(connections: ServiceConnections) -> None:
    """Release every handle; a failure on one does not skip the others."""
    try:
        await connections.http_session.close()
        logger.info("HTTP session closed")
    except Exception as e:
        logger.error(f"Error closing HTTP session: {e}")

    if connections.redis_cache is not None:
        try:
            await connections.redis_cache.close()
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
