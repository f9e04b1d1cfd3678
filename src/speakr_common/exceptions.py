"""Shared exceptions and error categories for all Speakr services."""

from enum import Enum


class ErrorCategory(str, Enum):
    """Coarse classification used by workers, the HTTP API and the CLI."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    AUTH = "auth"
    INTERNAL = "internal"


class SpeakrError(Exception):
    """Base class for errors raised by Speakr code."""

    category = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        self.cause = cause
        if category is not None:
            self.category = category
        # Set once a *.failed event describing this error has been published.
        self.reported = False
        super().__init__(message)


def category_of(error: BaseException) -> ErrorCategory:
    """Returns the category of an error, INTERNAL for foreign exceptions."""
    return getattr(error, "category", ErrorCategory.INTERNAL)


class InvalidCommandError(SpeakrError):
    """Raised when a command or request is malformed."""

    category = ErrorCategory.VALIDATION

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Invalid {operation} request: {reason}")


class RecordingNotFoundError(SpeakrError):
    """Raised when a recording id is not an active capture session."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, recording_id: str):
        self.recording_id = recording_id
        super().__init__(f"Recording '{recording_id}' not found")


class RecordingAlreadyExistsError(SpeakrError):
    """Raised when starting a recording whose id is already active."""

    category = ErrorCategory.CONFLICT

    def __init__(self, recording_id: str):
        self.recording_id = recording_id
        super().__init__(f"Recording '{recording_id}' already exists")


class RecorderError(SpeakrError):
    """Raised when the audio capture tool fails."""

    category = ErrorCategory.CONFLICT

    def __init__(
        self,
        recording_id: str,
        reason: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        self.recording_id = recording_id
        super().__init__(
            f"Recorder failed for '{recording_id}': {reason}", cause, category
        )


class StorageDownloadError(SpeakrError):
    """Raised when downloading an object from storage fails."""

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        object_name: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        self.object_name = object_name
        super().__init__(
            f"Failed to download '{object_name}' from storage", cause, category
        )


class StorageUploadError(SpeakrError):
    """Raised when uploading an object to storage fails."""

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        object_name: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        self.object_name = object_name
        super().__init__(
            f"Failed to upload '{object_name}' to storage", cause, category
        )


class EventPublishError(SpeakrError):
    """Raised when publishing a message to the broker fails."""

    category = ErrorCategory.TRANSIENT

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        super().__init__(
            f"Failed to publish message with routing key '{routing_key}'", cause
        )


class ExternalServiceError(SpeakrError):
    """Raised by adapters wrapping a third-party API (speech, embeddings)."""

    def __init__(
        self,
        service: str,
        message: str,
        category: ErrorCategory,
        cause: Exception | None = None,
    ):
        self.service = service
        super().__init__(f"{service}: {message}", cause, category)


class VectorStoreError(SpeakrError):
    """Raised when the vector database rejects or fails an operation."""

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        operation: str,
        reason: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        self.operation = operation
        super().__init__(f"Vector store {operation} failed: {reason}", cause, category)


class OperationCancelledError(SpeakrError):
    """Raised when an operation is interrupted by service shutdown."""

    category = ErrorCategory.TRANSIENT

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' cancelled by shutdown")


class _WrappedError(SpeakrError):
    """Orchestrator-level error that keeps the category of its cause."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        if category is None and cause is not None:
            category = category_of(cause)
        super().__init__(message, cause, category)


class TranscriptionError(_WrappedError):
    """Raised when a transcription attempt ends in failure."""

    def __init__(
        self,
        recording_id: str,
        reason: str,
        cause: Exception | None = None,
        category: ErrorCategory | None = None,
    ):
        self.recording_id = recording_id
        self.reason = reason
        super().__init__(
            f"Transcription failed for recording '{recording_id}': {reason}",
            cause,
            category,
        )


class EmbeddingError(_WrappedError):
    """Raised when generating an embedding fails."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        super().__init__(f"Embedding generation failed: {reason}", cause)


class SearchError(_WrappedError):
    """Raised when the similarity search itself fails."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        super().__init__(f"Vector search failed: {reason}", cause)
