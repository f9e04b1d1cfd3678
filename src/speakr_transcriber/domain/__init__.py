from speakr_transcriber.domain.models import SUPPORTED_FORMATS, RecordingSession
from speakr_transcriber.domain.recording_orchestrator import RecordingOrchestrator
from speakr_transcriber.domain.session_registry import SessionRegistry
from speakr_transcriber.domain.transcription_orchestrator import (
    TranscriptionOrchestrator,
)

__all__ = [
    "SUPPORTED_FORMATS",
    "RecordingSession",
    "RecordingOrchestrator",
    "SessionRegistry",
    "TranscriptionOrchestrator",
]
