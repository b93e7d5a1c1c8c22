"""
Validation for search requests and listing payloads.

Validators raise InvalidRequestError with a message suitable for returning to
the HTTP caller. They run before any cache or engine access.
"""

import math

from listing_search.errors import InvalidRequestError
from listing_search.models import Listing, SearchRequest, MAX_PAGE_SIZE

SORT_ORDERS = ("asc", "desc")

SORTABLE_FIELDS = frozenset({
    "price_per_night",
    "bedrooms",
    "bathrooms",
    "max_guests",
    "created_at",
    "title",
})

# Accepted spellings that normalize to an indexed field
SORT_FIELD_ALIASES = {
    "price": "price_per_night",
    "guests": "max_guests",
}


def _check_non_negative(name: str, value) -> None:
    if value is not None and value < 0:
        raise InvalidRequestError(f"{name} cannot be negative")


def _check_finite(name: str, value) -> None:
    if value is not None and not math.isfinite(value):
        raise InvalidRequestError(f"{name} must be a finite number")


def validate_search_request(request: SearchRequest) -> None:
    """
    Validate a search request before defaults are applied.

    Unset fields are not checked; defaults are always valid.

    Raises:
        InvalidRequestError: the first violated rule
    """
    if request.page is not None and request.page < 1:
        raise InvalidRequestError("page must be >= 1")

    if request.page_size is not None:
        if request.page_size < 1:
            raise InvalidRequestError("page_size must be > 0")
        if request.page_size > MAX_PAGE_SIZE:
            raise InvalidRequestError(f"page_size must be <= {MAX_PAGE_SIZE}")

    if request.sort_order is not None and request.sort_order.lower() not in SORT_ORDERS:
        raise InvalidRequestError("sort_order must be 'asc' or 'desc'")

    if request.sort_by is not None:
        field = SORT_FIELD_ALIASES.get(request.sort_by, request.sort_by)
        if field not in SORTABLE_FIELDS:
            allowed = ", ".join(sorted(SORTABLE_FIELDS))
            raise InvalidRequestError(f"sort_by must be one of: {allowed}")

    _check_finite("min_price", request.min_price)
    _check_finite("max_price", request.max_price)
    _check_non_negative("min_price", request.min_price)
    _check_non_negative("max_price", request.max_price)
    if (
        request.min_price is not None
        and request.max_price is not None
        and request.min_price > request.max_price
    ):
        raise InvalidRequestError("min_price cannot be greater than max_price")

    _check_non_negative("bedrooms", request.bedrooms)
    _check_non_negative("bathrooms", request.bathrooms)
    _check_non_negative("min_guests", request.min_guests)


def validate_listing(listing: Listing) -> None:
    """
    Validate a listing before it is written to the index.

    Raises:
        InvalidRequestError: a required field is blank or a number is negative
    """
    validate_listing_id(listing.id)
    for name in ("title", "city", "country"):
        if not getattr(listing, name).strip():
            raise InvalidRequestError(f"listing {name} cannot be empty")

    _check_finite("price_per_night", listing.price_per_night)
    for name in ("price_per_night", "bedrooms", "bathrooms", "max_guests"):
        _check_non_negative(f"listing {name}", getattr(listing, name))


def validate_listing_id(listing_id: str) -> None:
    if not listing_id or not listing_id.strip():
        raise InvalidRequestError("listing id cannot be empty")
