from speakr_transcriber.infrastructure.interfaces.audio_recorder import AudioRecorder
from speakr_transcriber.infrastructure.interfaces.object_store import ObjectStore
from speakr_transcriber.infrastructure.interfaces.transcription_service import (
    TranscriptionService,
)

__all__ = ["AudioRecorder", "ObjectStore", "TranscriptionService"]
