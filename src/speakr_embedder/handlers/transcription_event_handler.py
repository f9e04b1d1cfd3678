"""Handler for transcription.succeeded events."""

from typing import Any

from speakr_common.context import OperationContext
from speakr_common.contract import TRANSCRIPTION_SUCCEEDED, TranscriptionSucceededEvent
from speakr_common.worker import MessageHandler

from speakr_embedder.domain import EmbeddingOrchestrator


class TranscriptionEventHandler:
    """Feeds successful transcriptions into the embedding orchestrator."""

    def __init__(self, orchestrator: EmbeddingOrchestrator):
        self._orchestrator = orchestrator

    def handlers(self) -> dict[str, MessageHandler]:
        return {TRANSCRIPTION_SUCCEEDED: self.handle_succeeded}

    def handle_succeeded(self, payload: dict[str, Any], ctx: OperationContext) -> None:
        event = TranscriptionSucceededEvent.model_validate(payload)
        self._orchestrator.process_transcription(
            ctx,
            recording_id=event.recording_id,
            transcribed_text=event.transcribed_text,
            tags=event.tags,
            metadata=event.metadata,
        )
