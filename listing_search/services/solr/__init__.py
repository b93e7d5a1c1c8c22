"""Search engine services"""

from .solr_client import SolrClient
from .query_builder import (
    build_select_params,
    build_filter_queries,
    build_text_query,
    escape_term,
    escape_phrase,
    map_document,
)

__all__ = [
    "SolrClient",
    "build_select_params",
    "build_filter_queries",
    "build_text_query",
    "escape_term",
    "escape_phrase",
    "map_document",
]
