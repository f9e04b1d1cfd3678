from speakr_embedder.handlers.transcription_event_handler import (
    TranscriptionEventHandler,
)

__all__ = ["TranscriptionEventHandler"]
