"""Domain models shared by the embedding and query services."""

from typing import Any

from pydantic import BaseModel, Field


class TranscriptRecord(BaseModel, frozen=True):
    """A transcript together with its embedding, keyed by recording id."""

    recording_id: str
    transcribed_text: str
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float]


class SearchResult(BaseModel, frozen=True):
    """One ranked hit of a similarity search."""

    recording_id: str
    transcribed_text: str
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float
