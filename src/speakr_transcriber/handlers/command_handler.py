"""Handler mapping inbound commands onto the orchestrators."""

from typing import Any

from speakr_common.context import OperationContext
from speakr_common.contract import (
    RECORDING_CANCEL,
    RECORDING_START,
    RECORDING_STOP,
    TRANSCRIPTION_RUN,
    CancelRecordingCommand,
    StartRecordingCommand,
    StopRecordingCommand,
    TranscriptionRunCommand,
)
from speakr_common.worker import MessageHandler

from speakr_transcriber.domain import RecordingOrchestrator, TranscriptionOrchestrator


class CommandHandler:
    """
    Validates command payloads and dispatches them.

    Payload validation raises pydantic's ValidationError, which the worker
    treats as a malformed message.
    """

    def __init__(
        self,
        recordings: RecordingOrchestrator,
        transcriptions: TranscriptionOrchestrator,
    ):
        self._recordings = recordings
        self._transcriptions = transcriptions

    def handlers(self) -> dict[str, MessageHandler]:
        """Returns the subject-name to handler mapping consumed by the worker."""
        return {
            RECORDING_START: self.handle_start,
            RECORDING_STOP: self.handle_stop,
            RECORDING_CANCEL: self.handle_cancel,
            TRANSCRIPTION_RUN: self.handle_transcription,
        }

    def handle_start(self, payload: dict[str, Any], ctx: OperationContext) -> None:
        self._recordings.start_recording(ctx, StartRecordingCommand.model_validate(payload))

    def handle_stop(self, payload: dict[str, Any], ctx: OperationContext) -> None:
        self._recordings.stop_recording(ctx, StopRecordingCommand.model_validate(payload))

    def handle_cancel(self, payload: dict[str, Any], ctx: OperationContext) -> None:
        self._recordings.cancel_recording(ctx, CancelRecordingCommand.model_validate(payload))

    def handle_transcription(self, payload: dict[str, Any], ctx: OperationContext) -> None:
        self._transcriptions.transcribe(ctx, TranscriptionRunCommand.model_validate(payload))
