"""
Solr client - executes searches and index mutations against a Solr core over
its JSON HTTP API.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from listing_search.errors import (
    EngineResponseError,
    EngineStatusError,
    EngineTransportError,
)
from listing_search.models import Listing, SearchRequest
from .query_builder import (
    build_commit_command,
    build_delete_command,
    build_select_params,
    map_document,
)

logger = logging.getLogger(__name__)


class SolrClient:
    """
    Search engine client for one Solr core.

    Every call carries a total deadline. Transport failures, non-success
    statuses and unreadable bodies raise distinct SearchEngineError subclasses.
    Create and update are both full-document replaces, and every mutation is
    followed by an explicit commit so later reads see it.
    """

    def __init__(
        self,
        base_url: str,
        session: aiohttp.ClientSession,
        timeout_seconds: float = 30.0
    ):
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def search(self, request: SearchRequest) -> Tuple[List[Listing], int]:
        """
        Run a search for a defaulted request.

        Args:
            request: Search request with defaults applied

        Returns:
            (listings for the requested page, total number of matches)
        """
        params = build_select_params(request)
        data = await self._request("GET", "/select", params=params)

        response = data.get("response")
        if not isinstance(response, dict):
            raise EngineResponseError("search response has no 'response' object")

        total = response.get("numFound")
        docs = response.get("docs")
        if not isinstance(total, int) or isinstance(total, bool) or not isinstance(docs, list):
            raise EngineResponseError("search response has malformed numFound/docs")

        listings = [map_document(doc) for doc in docs if isinstance(doc, dict)]
        if len(listings) != len(docs):
            logger.warning(f"Skipped {len(docs) - len(listings)} non-object documents in search response")

        return listings, total

    async def index_listing(self, listing: Listing) -> None:
        """Add or replace the full document for a listing, then commit."""
        data = await self._request("POST", "/update/json/docs", payload=listing.to_document())
        self._check_update_status(data, f"index {listing.id}")
        await self.commit()

    async def update_listing(self, listing: Listing) -> None:
        """Replace a listing's document; identical to indexing it."""
        await self.index_listing(listing)

    async def delete_listing(self, listing_id: str) -> None:
        """Delete a listing's document by id, then commit."""
        data = await self._request("POST", "/update", payload=build_delete_command(listing_id))
        self._check_update_status(data, f"delete {listing_id}")
        await self.commit()

    async def commit(self) -> None:
        data = await self._request("POST", "/update", payload=build_commit_command())
        self._check_update_status(data, "commit")

    async def ping(self) -> bool:
        """Return True if the core answers its ping handler."""
        try:
            await self._request("GET", "/admin/ping", params=[("wt", "json")])
        except (EngineTransportError, EngineStatusError, EngineResponseError) as e:
            logger.warning(f"Solr ping failed: {e}")
            return False
        return True

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(
                method,
                url,
                params=params,
                json=payload,
                timeout=self._timeout,
            ) as response:
                body = await response.text()
                status = response.status
        except asyncio.TimeoutError as e:
            raise EngineTransportError(f"{method} {path} timed out") from e
        except aiohttp.ClientError as e:
            raise EngineTransportError(f"{method} {path} failed: {e}") from e

        if status != 200:
            raise EngineStatusError(status, body)

        try:
            data = json.loads(body)
        except ValueError as e:
            raise EngineResponseError(f"{method} {path} returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise EngineResponseError(f"{method} {path} returned a non-object body")
        return data

    @staticmethod
    def _check_update_status(data: Dict[str, Any], operation: str) -> None:
        header = data.get("responseHeader")
        if not isinstance(header, dict) or not isinstance(header.get("status"), int):
            raise EngineResponseError(f"{operation}: response has no responseHeader.status")
        if header["status"] != 0:
            raise EngineStatusError(header["status"], f"{operation} failed")
