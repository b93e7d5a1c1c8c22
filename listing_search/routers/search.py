"""
Search routes for indexed listings.
"""

import logging
import math
from typing import Mapping, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from listing_search.dependencies import get_search_service
from listing_search.errors import InvalidRequestError, SearchServiceError
from listing_search.models import SearchRequest, SearchResponse
from listing_search.services.search import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()

FLOAT_PARAMS = ("min_price", "max_price")
INT_PARAMS = ("bedrooms", "bathrooms", "min_guests", "page", "page_size")
TEXT_PARAMS = ("query", "city", "country")
OPTIONAL_TEXT_PARAMS = ("sort_by", "sort_order")


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise InvalidRequestError(f"{name} must be a number")
    if not math.isfinite(value):
        raise InvalidRequestError(f"{name} must be a finite number")
    return value


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidRequestError(f"{name} must be an integer")


def _non_empty(params: Mapping[str, str], name: str) -> Optional[str]:
    value = params.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def parse_search_request(params: Mapping[str, str]) -> SearchRequest:
    """
    Translate query-string parameters into a SearchRequest.

    Empty parameters count as absent. Unknown parameters are ignored.

    Raises:
        InvalidRequestError: a numeric parameter is not a number
    """
    fields = {name: params.get(name, "") for name in TEXT_PARAMS}

    for name in OPTIONAL_TEXT_PARAMS:
        fields[name] = _non_empty(params, name)

    for name in FLOAT_PARAMS:
        raw = _non_empty(params, name)
        fields[name] = _parse_float(name, raw) if raw is not None else None

    for name in INT_PARAMS:
        raw = _non_empty(params, name)
        fields[name] = _parse_int(name, raw) if raw is not None else None

    return SearchRequest(**fields)


@router.get("/search", response_model=SearchResponse)
async def search_listings(
    request: Request,
    service: SearchService = Depends(get_search_service)
):
    """
    Search indexed listings.

    Query parameters: query, city, country, min_price, max_price, bedrooms,
    bathrooms, min_guests, page, page_size, sort_by, sort_order.
    """
    try:
        search_request = parse_search_request(request.query_params)
        return await service.search(search_request)
    except InvalidRequestError as e:
        logger.info(f"Rejected search request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except SearchServiceError as e:
        logger.error(f"Search failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
