"""AssemblyAI implementation of the TranscriptionService interface."""

import tempfile

import assemblyai as aai
import httpx

from speakr_common.context import OperationContext
from speakr_common.exceptions import ErrorCategory, ExternalServiceError
from speakr_common.logging import setup_logging
from speakr_common.retry import call_with_retry

from speakr_transcriber.config import AssemblyAIConfig
from speakr_transcriber.infrastructure.interfaces import TranscriptionService

logger = setup_logging()

SERVICE_NAME = "AssemblyAI"

_AUTH_MARKERS = ("401", "403", "unauthorized", "authentication", "invalid api key", "forbidden")
_TRANSIENT_MARKERS = (
    "429",
    "500",
    "502",
    "503",
    "504",
    "rate limit",
    "timeout",
    "timed out",
    "unavailable",
    "connection",
    "try again",
)


def classify_message(message: str | None, default: ErrorCategory) -> ErrorCategory:
    """
    Classifies an AssemblyAI error message.

    The SDK surfaces most failures as text only, so the category is derived
    from well-known fragments of the message.
    """
    text = (message or "").lower()
    if any(marker in text for marker in _AUTH_MARKERS):
        return ErrorCategory.AUTH
    if any(marker in text for marker in _TRANSIENT_MARKERS):
        return ErrorCategory.TRANSIENT
    return default


def classify_error(error: Exception) -> ErrorCategory:
    if isinstance(error, httpx.TransportError):
        return ErrorCategory.TRANSIENT
    return classify_message(str(error), ErrorCategory.INTERNAL)


class AssemblyAITranscriber(TranscriptionService):
    """Handles audio transcription using AssemblyAI."""

    def __init__(self, transcriber: aai.Transcriber, config: AssemblyAIConfig):
        self._transcriber = transcriber
        self._config = config

    def transcribe(self, ctx: OperationContext, audio_data: bytes, audio_format: str) -> str:
        """
        Transcribes audio data using AssemblyAI.

        Transient failures are retried with backoff; authentication errors and
        rejected audio fail immediately.
        """
        text = call_with_retry(
            lambda: self._transcribe_once(audio_data, audio_format),
            ctx,
            name="assemblyai.transcribe",
            max_attempts=self._config.max_retries,
            base_delay=self._config.retry_base_delay,
        )
        logger.info(
            "Audio transcription successful",
            extra=ctx.log_extra(text_length=len(text), audio_format=audio_format),
        )
        return text

    def _transcribe_once(self, audio_data: bytes, audio_format: str) -> str:
        # The SDK uploads from a path, so the audio goes through a temp file.
        try:
            with tempfile.NamedTemporaryFile(suffix=f".{audio_format}", delete=True) as temp_file:
                temp_file.write(audio_data)
                temp_file.flush()
                transcript = self._transcriber.transcribe(temp_file.name)
        except Exception as e:
            raise ExternalServiceError(
                SERVICE_NAME, f"transcription request failed: {e}", classify_error(e), cause=e
            ) from e

        if transcript.status == aai.TranscriptStatus.error:
            raise ExternalServiceError(
                SERVICE_NAME,
                f"transcription failed: {transcript.error}",
                classify_message(transcript.error, ErrorCategory.VALIDATION),
            )

        return transcript.text or ""
