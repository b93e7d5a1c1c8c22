"""Search data models"""

from pydantic import BaseModel
from typing import List, Optional
from .listing import Listing


DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT_BY = "price_per_night"
DEFAULT_SORT_ORDER = "asc"


class SearchRequest(BaseModel):
    """
    Structured search parameters.

    Unset fields are None; defaults are filled in by the search service
    before the request is fingerprinted or translated.
    """
    query: str = ""
    city: str = ""
    country: str = ""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    min_guests: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


class SearchResponse(BaseModel):
    """One page of search results with pagination metadata"""
    results: List[Listing]
    total_results: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(
        cls,
        listings: List[Listing],
        total: int,
        page: int,
        page_size: int
    ) -> "SearchResponse":
        """Assemble a response, rounding the page count up."""
        return cls(
            results=listings,
            total_results=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
        )


class CachedSearchPage(BaseModel):
    """Value stored in both cache tiers for one search fingerprint"""
    listings: List[Listing]
    total: int


class ErrorResponse(BaseModel):
    """JSON error body returned by the HTTP surface"""
    error: str
    code: int


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size
