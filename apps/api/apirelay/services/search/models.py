"""Search request/response models."""

from __future__ import annotations

from dataclasses import dataclass, field

from apirelay.core.exceptions import ValidationError

SAFESEARCH_LEVELS = ("off", "moderate", "strict")


@dataclass
class SearchQuery:
    q: str
    count: int = 10
    offset: int = 0
    safesearch: str = "moderate"

    def __post_init__(self) -> None:
        self.q = (self.q or "").strip()
        if not self.q:
            raise ValidationError("Search query (q) is required")
        if not 1 <= self.count <= 100:
            raise ValidationError("Count must be between 1 and 100")
        if self.offset < 0:
            raise ValidationError("Offset must be non-negative")
        if self.safesearch not in SAFESEARCH_LEVELS:
            raise ValidationError("Safesearch must be one of: off, moderate, strict")


@dataclass
class SearchResult:
    title: str
    url: str
    description: str


@dataclass
class SearchResponse:
    query: str
    results: list[SearchResult] = field(default_factory=list)
    execution_time_ms: int = 0
    mock: bool = False

    @property
    def result_count(self) -> int:
        return len(self.results)
