"""
Command and event contract shared by every Speakr producer and consumer.

Subjects follow `<namespace>.command.<name>` and `<namespace>.event.<name>`.
Payload models ignore unknown fields so that producers can add fields
without breaking older consumers.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

RECORDING_START = "recording.start"
RECORDING_STOP = "recording.stop"
RECORDING_CANCEL = "recording.cancel"
TRANSCRIPTION_RUN = "transcription.run"

RECORDING_STARTED = "recording.started"
RECORDING_FINISHED = "recording.finished"
RECORDING_CANCELLED = "recording.cancelled"
TRANSCRIPTION_SUCCEEDED = "transcription.succeeded"
TRANSCRIPTION_FAILED = "transcription.failed"
EMBEDDING_SUCCEEDED = "embedding.succeeded"

COMMANDS = (RECORDING_START, RECORDING_STOP, RECORDING_CANCEL, TRANSCRIPTION_RUN)
EVENTS = (
    RECORDING_STARTED,
    RECORDING_FINISHED,
    RECORDING_CANCELLED,
    TRANSCRIPTION_SUCCEEDED,
    TRANSCRIPTION_FAILED,
    EMBEDDING_SUCCEEDED,
)


class Subjects:
    """Builds and parses namespaced subjects (RabbitMQ routing keys)."""

    def __init__(self, namespace: str = "speakr"):
        self.namespace = namespace

    def command(self, name: str) -> str:
        return f"{self.namespace}.command.{name}"

    def event(self, name: str) -> str:
        return f"{self.namespace}.event.{name}"

    def parse(self, subject: str) -> tuple[str, str]:
        """
        Splits a subject into its kind and logical name.

        Example: "speakr.event.recording.started" -> ("event", "recording.started")

        Raises:
            ValueError: If the subject is outside this namespace.
        """
        prefix = f"{self.namespace}."
        if not subject.startswith(prefix):
            raise ValueError(f"Subject '{subject}' is outside namespace '{self.namespace}'")
        kind, _, name = subject[len(prefix):].partition(".")
        if kind not in ("command", "event") or not name:
            raise ValueError(f"Malformed subject '{subject}'")
        return kind, name


class Message(BaseModel):
    """Base class for every payload on the bus."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class StartRecordingCommand(Message):
    output_format: str = "wav"
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class StopRecordingCommand(Message):
    recording_id: str
    transcribe_on_stop: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class CancelRecordingCommand(Message):
    recording_id: str


class TranscriptionRunCommand(Message):
    """
    Requests transcription of a stored recording or of inline audio.

    Exactly one of `recording_id` and `audio_data` must be set; the
    transcription orchestrator enforces this so that direct in-process calls
    are validated the same way as bus messages.
    """

    recording_id: str | None = None
    audio_data: str | None = None
    audio_format: str = "wav"
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class RecordingStartedEvent(Message):
    recording_id: str
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class RecordingFinishedEvent(Message):
    recording_id: str
    audio_file_path: str
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class RecordingCancelledEvent(Message):
    recording_id: str


class TranscriptionSucceededEvent(Message):
    recording_id: str = ""
    transcribed_text: str = ""
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class TranscriptionFailedEvent(Message):
    recording_id: str = ""
    error: str
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class EmbeddingSucceededEvent(Message):
    recording_id: str
    embedding_dimensions: int
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


COMMAND_MODELS: dict[str, type[Message]] = {
    RECORDING_START: StartRecordingCommand,
    RECORDING_STOP: StopRecordingCommand,
    RECORDING_CANCEL: CancelRecordingCommand,
    TRANSCRIPTION_RUN: TranscriptionRunCommand,
}

EVENT_MODELS: dict[str, type[Message]] = {
    RECORDING_STARTED: RecordingStartedEvent,
    RECORDING_FINISHED: RecordingFinishedEvent,
    RECORDING_CANCELLED: RecordingCancelledEvent,
    TRANSCRIPTION_SUCCEEDED: TranscriptionSucceededEvent,
    TRANSCRIPTION_FAILED: TranscriptionFailedEvent,
    EMBEDDING_SUCCEEDED: EmbeddingSucceededEvent,
}
