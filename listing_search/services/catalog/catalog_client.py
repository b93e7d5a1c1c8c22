"""
Canonical listing store client.

Reads the authoritative copy of a listing so the index is always derived from
the store rather than from the change event itself.
"""

import asyncio
import json
import logging
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from listing_search.errors import (
    CatalogResponseError,
    CatalogUnavailableError,
    ListingNotFoundError,
)
from listing_search.models import Listing

logger = logging.getLogger(__name__)


class CatalogClient:
    """HTTP client for ``GET <base>/properties/<id>`` on the canonical store."""

    def __init__(
        self,
        base_url: str,
        session: aiohttp.ClientSession,
        timeout_seconds: float = 30.0
    ):
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def fetch_listing(self, listing_id: str) -> Listing:
        """
        Fetch one listing by id.

        Args:
            listing_id: Listing identifier

        Returns:
            The canonical Listing

        Raises:
            ListingNotFoundError: the store answered 404
            CatalogUnavailableError: transport failure, timeout or other non-200 status
            CatalogResponseError: the body is not a listing
        """
        url = f"{self.base_url}/properties/{quote(listing_id, safe='')}"
        logger.info(f"Fetching listing {listing_id} from {url}")

        try:
            async with self._session.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            ) as response:
                status = response.status
                body = await response.text()
        except asyncio.TimeoutError as e:
            raise CatalogUnavailableError(f"fetching listing {listing_id} timed out") from e
        except aiohttp.ClientError as e:
            raise CatalogUnavailableError(f"fetching listing {listing_id} failed: {e}") from e

        if status == 404:
            raise ListingNotFoundError(listing_id)
        if status != 200:
            raise CatalogUnavailableError(
                f"properties API returned status {status}: {body[:500]}",
                status=status,
            )

        try:
            listing = Listing.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            raise CatalogResponseError(f"listing {listing_id} has an invalid body: {e}") from e

        if not listing.id:
            listing = listing.model_copy(update={"id": listing_id})

        logger.info(f"Fetched listing {listing.id}: {listing.title}")
        return listing
