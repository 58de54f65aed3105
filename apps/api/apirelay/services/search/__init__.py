"""Search provider proxy."""

from .brave import BraveSearchService
from .models import SAFESEARCH_LEVELS, SearchQuery, SearchResponse, SearchResult

__all__ = [
    "BraveSearchService",
    "SAFESEARCH_LEVELS",
    "SearchQuery",
    "SearchResponse",
    "SearchResult",
]
