"""Per-operation context threaded explicitly through orchestrators and adapters."""

import threading
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CORRELATION_ID_HEADER = "correlation_id"


def new_correlation_id() -> str:
    """Generates a fresh correlation id."""
    return str(uuid.uuid4())


class OperationContext(BaseModel):
    """
    Identifies one logical operation across services and log lines.

    The correlation id is generated by whoever initiates the operation and is
    copied into message headers. The cancel event is shared with the owning
    worker so that shutdown interrupts slow calls.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    correlation_id: str = Field(default_factory=new_correlation_id)
    recording_id: str | None = None
    operation: str | None = None
    cancel_event: threading.Event = Field(
        default_factory=threading.Event, exclude=True, repr=False
    )

    @classmethod
    def from_headers(
        cls,
        headers: dict[str, Any] | None,
        cancel_event: threading.Event | None = None,
    ) -> "OperationContext":
        """Builds a context from inbound message headers, generating an id if absent."""
        correlation_id = (headers or {}).get(CORRELATION_ID_HEADER)
        fields: dict[str, Any] = {}
        if isinstance(correlation_id, bytes):
            correlation_id = correlation_id.decode("utf-8")
        if correlation_id:
            fields["correlation_id"] = str(correlation_id)
        if cancel_event is not None:
            fields["cancel_event"] = cancel_event
        return cls(**fields)

    def for_recording(self, recording_id: str | None) -> "OperationContext":
        """Returns a copy bound to a recording id."""
        return self.model_copy(update={"recording_id": recording_id or None})

    def for_operation(self, operation: str) -> "OperationContext":
        """Returns a copy bound to an operation name."""
        return self.model_copy(update={"operation": operation})

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def log_extra(self, **fields: Any) -> dict[str, Any]:
        """Returns the `extra` mapping for a log call made on behalf of this context."""
        extra: dict[str, Any] = {
            "correlation_id": self.correlation_id,
            "recording_id": self.recording_id,
        }
        if self.operation:
            extra["operation"] = self.operation
        extra.update(fields)
        return extra

    def headers(self) -> dict[str, str]:
        """Message headers that propagate this context over the bus."""
        return {CORRELATION_ID_HEADER: self.correlation_id}
