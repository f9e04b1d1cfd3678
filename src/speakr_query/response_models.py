from typing import Any

from pydantic import BaseModel, Field

from speakr_common.models import SearchResult


class QueryRequest(BaseModel):
    """Body of a search request."""

    query_text: str
    filter_tags: list[str] = Field(default_factory=list)
    limit: int | None = None


class QueryResponse(BaseModel):
    """Ranked search results."""

    results: list[SearchResult]
    count: int


class RecordResponse(BaseModel):
    """A stored transcript without its embedding vector."""

    recording_id: str
    transcribed_text: str
    tags: list[str]
    metadata: dict[str, Any]
    embedding_dimensions: int


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "query"
