"""
FastAPI dependencies that hand request handlers the service handles created
at startup.
"""

from fastapi import Request

from listing_search.services.search import SearchService


def get_search_service(request: Request) -> SearchService:
    """Get the search service attached to the application"""
    service = getattr(request.app.state, "search_service", None)
    if service is None:
        raise RuntimeError("Search service not initialized")
    return service
