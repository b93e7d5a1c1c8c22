"""
Exception types for the listing search service.

Validation and not-found errors are permanent and never retried. Engine,
catalog and broker errors are transient and are retried only by requeueing
the change event that triggered them.
"""

from typing import List, Optional


class SearchServiceError(Exception):
    """Base class for all errors raised by the search subsystem."""


class InvalidRequestError(SearchServiceError):
    """Malformed or out-of-range search request or listing payload."""


class ListingNotFoundError(SearchServiceError):
    """The canonical store has no listing with the requested id."""

    def __init__(self, listing_id: str):
        super().__init__(f"listing {listing_id} not found")
        self.listing_id = listing_id


class SearchEngineError(SearchServiceError):
    """Base class for failures talking to the search engine."""


class EngineTransportError(SearchEngineError):
    """Network failure or timeout before the engine answered."""


class EngineStatusError(SearchEngineError):
    """The engine answered with a non-success status."""

    def __init__(self, status: int, detail: str = ""):
        message = f"search engine returned status {status}"
        if detail:
            message = f"{message}: {detail[:500]}"
        super().__init__(message)
        self.status = status


class EngineResponseError(SearchEngineError):
    """The engine answered but the body could not be understood."""


class CatalogError(SearchServiceError):
    """Base class for failures fetching from the canonical listing store."""


class CatalogUnavailableError(CatalogError):
    """Transport failure, timeout or server error from the canonical store."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CatalogResponseError(CatalogError):
    """The canonical store returned a body that is not a listing."""


class MalformedEventError(SearchServiceError):
    """A change event could not be parsed or names an unknown action."""


class ConsumerShutdownError(SearchServiceError):
    """One or more broker resources failed to close cleanly."""

    def __init__(self, errors: List[Exception]):
        super().__init__(
            "errors closing consumer: " + "; ".join(str(e) for e in errors)
        )
        self.errors = errors
