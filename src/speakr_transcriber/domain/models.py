"""Domain models for the capture and transcription service."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

SUPPORTED_FORMATS = ("wav", "mp3")


class RecordingSession(BaseModel, frozen=True):
    """
    An active capture, held in the registry between start and stop/cancel.

    `captured_audio` is set only when a stop already ended the capture but
    could not store or announce it; a retried stop then reuses these bytes.
    """

    recording_id: str
    output_format: str = "wav"
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    correlation_id: str | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    captured_audio: bytes | None = Field(default=None, repr=False)
