"""
Search service - coordinates validation, caching and the search engine for
reads, and engine mutation plus cache invalidation for writes.
"""

import logging

from listing_search.models import CachedSearchPage, Listing, SearchRequest, SearchResponse
from listing_search.services.cache import IndexGeneration
from .contracts import CatalogSource, SearchCache, SearchEngine
from .normalization import apply_defaults, cache_fingerprint
from .validators import validate_listing, validate_listing_id, validate_search_request

logger = logging.getLogger(__name__)


class SearchService:
    """
    Orchestrates the read and write paths of the search subsystem.

    Reads go cache first and fall through to the engine on a miss. Writes go
    to the engine and then advance the index generation, which retires every
    cached search written before the mutation.
    """

    CACHE_TTL = 600  # freshness hint passed to the cache, 10 minutes

    def __init__(
        self,
        engine: SearchEngine,
        cache: SearchCache,
        catalog: CatalogSource,
        generation: IndexGeneration = None
    ):
        self.engine = engine
        self.cache = cache
        self.catalog = catalog
        self.generation = generation or IndexGeneration()

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Answer one page of a search.

        Args:
            request: Raw search request; unset fields get defaults

        Returns:
            SearchResponse for the requested page

        Raises:
            InvalidRequestError: request failed validation (no cache or engine access)
            SearchEngineError: cache miss and the engine query failed
        """
        validate_search_request(request)
        request = apply_defaults(request)

        generation = await self.generation.current()
        cache_key = cache_fingerprint(request, generation)

        cached, found = await self.cache.get(cache_key)
        if found:
            logger.info(f"Search: Cache HIT for key={cache_key}")
            return SearchResponse.build(cached.listings, cached.total, request.page, request.page_size)

        logger.info(f"Search: Cache MISS for key={cache_key}, querying search engine")
        listings, total = await self.engine.search(request)
        logger.info(f"Search: engine returned {len(listings)} results, total={total}")

        await self.cache.set(
            cache_key,
            CachedSearchPage(listings=listings, total=total),
            self.CACHE_TTL,
        )

        return SearchResponse.build(listings, total, request.page, request.page_size)

    async def index_listing(self, listing: Listing) -> None:
        """Validate and index a new listing, then invalidate cached searches."""
        validate_listing(listing)
        logger.info(f"IndexListing: Indexing listing ID={listing.id}")

        await self.engine.index_listing(listing)

        logger.info(f"IndexListing: Listing ID={listing.id} indexed successfully")
        await self.invalidate_cache()

    async def update_listing(self, listing: Listing) -> None:
        """Validate and replace an indexed listing, then invalidate cached searches."""
        validate_listing(listing)
        logger.info(f"UpdateListing: Updating listing ID={listing.id}")

        await self.engine.update_listing(listing)

        logger.info(f"UpdateListing: Listing ID={listing.id} updated successfully")
        await self.invalidate_cache()

    async def delete_listing(self, listing_id: str) -> None:
        """Remove a listing from the index, then invalidate cached searches."""
        validate_listing_id(listing_id)
        logger.info(f"DeleteListing: Deleting listing ID={listing_id}")

        await self.engine.delete_listing(listing_id)

        logger.info(f"DeleteListing: Listing ID={listing_id} deleted successfully")
        await self.invalidate_cache()

    async def fetch_canonical(self, listing_id: str) -> Listing:
        """
        Read the authoritative listing from the canonical store.

        Raises:
            ListingNotFoundError: the store has no such listing
            CatalogError: the store could not be reached or answered badly
        """
        validate_listing_id(listing_id)
        return await self.catalog.fetch_listing(listing_id)

    async def invalidate_cache(self) -> int:
        """Retire all cached searches by advancing the index generation."""
        return await self.generation.bump()
