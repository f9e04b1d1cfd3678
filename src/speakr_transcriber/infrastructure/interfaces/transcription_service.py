"""Abstract interface for transcription service operations."""

from abc import ABC, abstractmethod

from speakr_common.context import OperationContext


class TranscriptionService(ABC):
    """Abstract base class for speech-to-text backends."""

    @abstractmethod
    def transcribe(self, ctx: OperationContext, audio_data: bytes, audio_format: str) -> str:
        """
        Transcribes audio data into plain text.

        Implementations own their retry policy; callers do not retry.

        Args:
            ctx: Context of the calling operation.
            audio_data: Raw audio file bytes.
            audio_format: Format hint, e.g. "wav".

        Returns:
            The transcribed text, possibly empty.

        Raises:
            ExternalServiceError: If transcription fails.
        """
