"""
Capability contracts used by the search service.

Each contract has one production implementation (SolrClient, CatalogClient,
TwoTierCache); tests substitute in-memory fakes.
"""

from typing import List, Optional, Protocol, Tuple, runtime_checkable

from listing_search.models import CachedSearchPage, Listing, SearchRequest


@runtime_checkable
class SearchEngine(Protocol):
    """Contract for the search index backend."""

    async def search(self, request: SearchRequest) -> Tuple[List[Listing], int]:
        ...

    async def index_listing(self, listing: Listing) -> None:
        ...

    async def update_listing(self, listing: Listing) -> None:
        ...

    async def delete_listing(self, listing_id: str) -> None:
        ...


@runtime_checkable
class CatalogSource(Protocol):
    """Contract for the canonical listing store."""

    async def fetch_listing(self, listing_id: str) -> Listing:
        ...


@runtime_checkable
class SearchCache(Protocol):
    """Contract for the search result cache."""

    async def get(self, key: str) -> Tuple[Optional[CachedSearchPage], bool]:
        ...

    async def set(self, key: str, value: CachedSearchPage, ttl: Optional[int] = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...
