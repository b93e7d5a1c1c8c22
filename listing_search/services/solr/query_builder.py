"""
Solr query builder - translates search requests into select parameters and
maps result documents back into listings.

All user-supplied text is escaped before it is embedded in a query string.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from listing_search.models import Listing, SearchRequest

# Characters with meaning in the Lucene/Solr standard query syntax
RESERVED_CHARACTERS = frozenset('\\+-&|!(){}[]^"~*?:/')

MATCH_ALL = "*:*"
PRICE_UPPER_SENTINEL = 999999
TEXT_FIELDS = ("title", "city", "country")


def escape_term(value: str) -> str:
    """
    Escape a value for use as a bare (possibly wildcarded) query term.

    Reserved characters and whitespace are backslash-escaped, so ``*`` or
    ``(`` in user input match literally instead of changing the query.
    """
    escaped = []
    for char in value:
        if char in RESERVED_CHARACTERS or char.isspace():
            escaped.append("\\")
        escaped.append(char)
    return "".join(escaped)


def escape_phrase(value: str) -> str:
    """Escape a value for use inside a double-quoted phrase."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_text_query(text: str) -> str:
    """
    Build the main query for free text.

    The text is matched as a substring of title, city or country (OR).
    Blank text matches every document.
    """
    text = (text or "").strip()
    if not text:
        return MATCH_ALL

    term = escape_term(text)
    clauses = [f"{field}:*{term}*" for field in TEXT_FIELDS]
    return "(" + " OR ".join(clauses) + ")"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_filter_queries(request: SearchRequest) -> List[str]:
    """
    Build filter queries (combined with AND by Solr) for a defaulted request.

    Args:
        request: Search request with defaults applied

    Returns:
        List of ``fq`` values, empty when no filter is set
    """
    filters = []

    if request.min_price is not None or request.max_price is not None:
        min_price = request.min_price if request.min_price is not None else 0
        max_price = request.max_price if request.max_price is not None else PRICE_UPPER_SENTINEL
        filters.append(
            f"price_per_night:[{_format_number(min_price)} TO {_format_number(max_price)}]"
        )

    if request.bedrooms is not None:
        filters.append(f"bedrooms:{int(request.bedrooms)}")

    if request.bathrooms is not None:
        filters.append(f"bathrooms:{int(request.bathrooms)}")

    if request.min_guests is not None:
        filters.append(f"max_guests:[{int(request.min_guests)} TO *]")

    if request.city:
        filters.append(f'city:"{escape_phrase(request.city)}"')

    if request.country:
        filters.append(f'country:"{escape_phrase(request.country)}"')

    return filters


def build_select_params(request: SearchRequest) -> List[Tuple[str, str]]:
    """
    Build the full parameter list for a Solr ``/select`` call.

    A list of pairs is returned because ``fq`` may repeat.

    Args:
        request: Search request with defaults applied
    """
    start = (request.page - 1) * request.page_size

    params = [("q", build_text_query(request.query))]
    params.extend(("fq", fq) for fq in build_filter_queries(request))
    params.extend([
        ("start", str(start)),
        ("rows", str(request.page_size)),
        ("sort", f"{request.sort_by} {request.sort_order}"),
        ("wt", "json"),
    ])
    return params


def build_delete_command(listing_id: str) -> Dict[str, Any]:
    return {"delete": {"id": listing_id}}


def build_commit_command() -> Dict[str, Any]:
    return {"commit": {}}


# Result mapping
#
# Schemaless Solr cores return single-valued fields as one-element lists, so
# each scalar reader unwraps those first. A field that cannot be read falls
# back to its zero value without affecting the rest of the document.

def _scalar(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _as_str(value: Any) -> str:
    value = _scalar(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _as_float(value: Any) -> float:
    value = _scalar(value)
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _as_int(value: Any) -> int:
    value = _scalar(value)
    if isinstance(value, bool):
        return 0
    try:
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            return int(float(value))
    except (ValueError, OverflowError):
        return 0
    return 0


def _as_bool(value: Any) -> bool:
    value = _scalar(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return False


def _as_datetime(value: Any) -> Optional[datetime]:
    value = _scalar(value)
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def map_document(doc: Dict[str, Any]) -> Listing:
    """Convert a Solr result document into a Listing, field by field."""
    return Listing(
        id=_as_str(doc.get("id")),
        title=_as_str(doc.get("title")),
        description=_as_str(doc.get("description")),
        city=_as_str(doc.get("city")),
        country=_as_str(doc.get("country")),
        price_per_night=_as_float(doc.get("price_per_night")),
        bedrooms=_as_int(doc.get("bedrooms")),
        bathrooms=_as_int(doc.get("bathrooms")),
        max_guests=_as_int(doc.get("max_guests")),
        images=_as_str_list(doc.get("images")),
        owner_id=_as_int(doc.get("owner_id")),
        available=_as_bool(doc.get("available")),
        created_at=_as_datetime(doc.get("created_at")),
    )
