"""Pydantic schemas used by the FastAPI application."""

from .api_key import ApiKeyCreate, ApiKeyRead
from .provider import ProviderCheckResponse, ProviderConfigRead, ProviderUpsert
from .search import SearchRequest, SearchResponseBody, SearchResultItem
from .stats import CallLogRead, CleanupResponse

__all__ = [
    # API Key schemas
    "ApiKeyCreate",
    "ApiKeyRead",
    # Provider schemas
    "ProviderCheckResponse",
    "ProviderConfigRead",
    "ProviderUpsert",
    # Search schemas
    "SearchRequest",
    "SearchResponseBody",
    "SearchResultItem",
    # Stats schemas
    "CallLogRead",
    "CleanupResponse",
]
