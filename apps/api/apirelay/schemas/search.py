"""Pydantic schemas for the search proxy."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from apirelay.schemas.base import CamelModel
from apirelay.services.search import SearchResponse


class SearchRequest(BaseModel):
    """Search parameters; range checks are applied by ``SearchQuery``."""

    q: Optional[str] = Field(None, description="Search terms")
    count: Optional[int] = Field(None, description="Number of results (1-100)")
    offset: Optional[int] = Field(None, description="Result offset")
    safesearch: Optional[str] = Field(None, description="off, moderate or strict")


class SearchResultItem(CamelModel):
    title: str
    url: str
    description: str


class SearchResponseBody(CamelModel):
    query: str
    results: list[SearchResultItem]
    result_count: int
    execution_time: int = Field(..., description="Upstream time in milliseconds")
    mock: bool
    timestamp: datetime

    @classmethod
    def from_response(cls, response: SearchResponse, timestamp: datetime) -> "SearchResponseBody":
        return cls(
            query=response.query,
            results=[
                SearchResultItem(title=r.title, url=r.url, description=r.description)
                for r in response.results
            ],
            result_count=response.result_count,
            execution_time=response.execution_time_ms,
            mock=response.mock,
            timestamp=timestamp,
        )
