"""Search services"""

from .contracts import CatalogSource, SearchCache, SearchEngine
from .normalization import apply_defaults, cache_fingerprint
from .validators import validate_listing, validate_search_request
from .search_service import SearchService

__all__ = [
    "SearchService",
    "SearchEngine",
    "SearchCache",
    "CatalogSource",
    "apply_defaults",
    "cache_fingerprint",
    "validate_listing",
    "validate_search_request",
]
