"""Data models for the listing search service"""

from .listing import Listing
from .search import (
    SearchRequest,
    SearchResponse,
    CachedSearchPage,
    ErrorResponse,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
)
from .events import ChangeAction, ChangeEvent

__all__ = [
    "Listing",
    "SearchRequest",
    "SearchResponse",
    "CachedSearchPage",
    "ErrorResponse",
    "ChangeAction",
    "ChangeEvent",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "DEFAULT_SORT_BY",
    "DEFAULT_SORT_ORDER",
]
