"""
Default filling and cache fingerprints for search requests.

Two requests that mean the same search must produce the same fingerprint, so
normalization also folds away values that add no constraint (a zero minimum
price or guest count) and spelling variants of the sort parameters.
"""

import hashlib
import json

from listing_search.models import (
    SearchRequest,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
)
from .validators import SORT_FIELD_ALIASES

CACHE_KEY_PREFIX = "search"


def apply_defaults(request: SearchRequest) -> SearchRequest:
    """
    Return a fully defaulted, normalized copy of a validated request.

    Args:
        request: Request that already passed validate_search_request

    Returns:
        New SearchRequest with page, page_size, sort_by and sort_order set
    """
    sort_by = request.sort_by or DEFAULT_SORT_BY
    sort_by = SORT_FIELD_ALIASES.get(sort_by, sort_by)

    return SearchRequest(
        query=(request.query or "").strip(),
        city=(request.city or "").strip(),
        country=(request.country or "").strip(),
        # prices and guest counts are never negative, so zero lower bounds are no-ops
        min_price=request.min_price or None,
        max_price=request.max_price,
        bedrooms=request.bedrooms,
        bathrooms=request.bathrooms,
        min_guests=request.min_guests or None,
        page=request.page if request.page is not None else DEFAULT_PAGE,
        page_size=request.page_size if request.page_size is not None else DEFAULT_PAGE_SIZE,
        sort_by=sort_by,
        sort_order=(request.sort_order or DEFAULT_SORT_ORDER).lower(),
    )


def cache_fingerprint(request: SearchRequest, generation: int = 0) -> str:
    """
    Deterministic cache key for a defaulted request.

    The key depends only on field values, never on the order parameters
    arrived in, and embeds the index generation so mutations retire old keys.
    """
    canonical = json.dumps(request.model_dump(), sort_keys=True, separators=(",", ":"))
    digest = hashlib.md5(canonical.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}:g{generation}:{digest}"
