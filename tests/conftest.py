"""
Shared fixtures and in-memory port implementations.

Every port used by the orchestrators has a fake here so that the tests run
without RabbitMQ, MinIO, PostgreSQL or any external API.
"""

import math
import threading

import pytest

from speakr_common.context import OperationContext
from speakr_common.contract import Subjects
from speakr_common.events import EventEmitter
from speakr_common.exceptions import (
    ErrorCategory,
    EventPublishError,
    ExternalServiceError,
    RecorderError,
    StorageDownloadError,
    StorageUploadError,
)
from speakr_common.infrastructure.interfaces import (
    EmbeddingGenerator,
    MessageBroker,
    MessagePublisher,
    VectorStore,
)
from speakr_common.models import SearchResult, TranscriptRecord
from speakr_transcriber.infrastructure.interfaces import (
    AudioRecorder,
    ObjectStore,
    TranscriptionService,
)

NAMESPACE = "speakr"
SAMPLE_AUDIO = b"RIFF\x24\x00\x00\x00WAVEfmt sample"


# -------------------------------------------------------------- #
# Bus
# -------------------------------------------------------------- #


class RecordingPublisher(MessagePublisher):
    """Keeps every published message; can be told to fail for given subjects."""

    def __init__(self):
        self.messages: list[tuple[str, dict, dict]] = []
        self.fail_on: set[str] = set()
        self._subjects = Subjects(NAMESPACE)

    def publish(self, routing_key, payload, headers=None):
        if routing_key in self.fail_on:
            raise EventPublishError(routing_key, ConnectionError("broker down"))
        self.messages.append((routing_key, payload, dict(headers or {})))

    def names(self) -> list[str]:
        return [self._subjects.parse(key)[1] for key, _, _ in self.messages]

    def payloads(self, name: str) -> list[dict]:
        return [
            payload
            for key, payload, _ in self.messages
            if self._subjects.parse(key)[1] == name
        ]


class FakeBroker(MessageBroker):
    """Delivers the given messages synchronously and records acks and rejects."""

    def __init__(self, messages):
        self.messages = messages
        self.acked: list[int] = []
        self.rejected: list[tuple[int, bool]] = []
        self.stopped = False

    def acknowledge(self, delivery_tag):
        self.acked.append(delivery_tag)

    def reject(self, delivery_tag, requeue):
        self.rejected.append((delivery_tag, requeue))

    def consume(self, callback):
        for tag, (routing_key, body, headers) in enumerate(self.messages, start=1):
            callback(routing_key, body, tag, headers)

    def stop(self):
        self.stopped = True

    def setup(self):
        pass


# -------------------------------------------------------------- #
# Capture and storage
# -------------------------------------------------------------- #


class FakeRecorder(AudioRecorder):
    def __init__(self, audio: bytes = SAMPLE_AUDIO):
        self.audio = audio
        self.active: dict[str, str] = {}
        self.cancelled: list[str] = []
        self.start_error: Exception | None = None
        self.stop_error: Exception | None = None
        self._lock = threading.Lock()

    def start(self, ctx, recording_id, output_format):
        if self.start_error is not None:
            raise self.start_error
        with self._lock:
            self.active[recording_id] = output_format

    def stop(self, ctx, recording_id):
        with self._lock:
            if recording_id not in self.active:
                raise RecorderError(recording_id, "no running capture")
            del self.active[recording_id]
        if self.stop_error is not None:
            raise self.stop_error
        return self.audio

    def cancel(self, ctx, recording_id):
        with self._lock:
            self.active.pop(recording_id, None)
            self.cancelled.append(recording_id)


class InMemoryObjectStore(ObjectStore):
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_store = False
        self.fail_retrieve = False

    def store_audio(self, ctx, recording_id, audio_data, audio_format):
        if self.fail_store:
            raise StorageUploadError(f"recordings/{recording_id}", OSError("unreachable"))
        self.objects[recording_id] = (audio_data, audio_format)
        return f"s3://speakr-audio/recordings/{recording_id}"

    def retrieve_audio(self, ctx, recording_id):
        if self.fail_retrieve or recording_id not in self.objects:
            raise StorageDownloadError(
                f"recordings/{recording_id}", KeyError(recording_id), ErrorCategory.NOT_FOUND
            )
        return self.objects[recording_id]


class FakeTranscriptionService(TranscriptionService):
    def __init__(self, text: str = "hello world"):
        self.text = text
        self.error: Exception | None = None
        self.calls: list[tuple[bytes, str]] = []

    def transcribe(self, ctx, audio_data, audio_format):
        self.calls.append((audio_data, audio_format))
        if self.error is not None:
            raise self.error
        return self.text


# -------------------------------------------------------------- #
# Embeddings and vector storage
# -------------------------------------------------------------- #


class SpyEmbeddingGenerator(EmbeddingGenerator):
    """Returns configured vectors per text, or a fixed default."""

    def __init__(self, dimensions: int = 4):
        self.dimensions = dimensions
        self.vectors: dict[str, list[float]] = {}
        self.error: Exception | None = None
        self.calls: list[str] = []

    def generate(self, ctx, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vectors.get(text, [1.0] + [0.0] * (self.dimensions - 1))


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStore):
    def __init__(self):
        self.records: dict[str, TranscriptRecord] = {}
        self.error: Exception | None = None
        self.search_calls: list[tuple[list[str], int]] = []

    def upsert(self, ctx, record):
        if self.error is not None:
            raise self.error
        self.records[record.recording_id] = record

    def get(self, ctx, recording_id):
        if self.error is not None:
            raise self.error
        return self.records.get(recording_id)

    def search(self, ctx, query_embedding, filter_tags, limit):
        self.search_calls.append((list(filter_tags), limit))
        if self.error is not None:
            raise self.error
        candidates = [
            r
            for r in self.records.values()
            if not filter_tags or set(r.tags) & set(filter_tags)
        ]
        results = [
            SearchResult(
                recording_id=r.recording_id,
                transcribed_text=r.transcribed_text,
                tags=r.tags,
                metadata=r.metadata,
                similarity=cosine_similarity(query_embedding, r.embedding),
            )
            for r in candidates
        ]
        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:limit]


def transient_api_error(service: str = "test api") -> ExternalServiceError:
    return ExternalServiceError(service, "503 unavailable", ErrorCategory.TRANSIENT)


# -------------------------------------------------------------- #
# Fixtures
# -------------------------------------------------------------- #


@pytest.fixture
def ctx() -> OperationContext:
    return OperationContext(correlation_id="corr-test")


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def emitter(publisher) -> EventEmitter:
    return EventEmitter(publisher, Subjects(NAMESPACE))


@pytest.fixture
def recorder() -> FakeRecorder:
    return FakeRecorder()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def transcription_service() -> FakeTranscriptionService:
    return FakeTranscriptionService()


@pytest.fixture
def generator() -> SpyEmbeddingGenerator:
    return SpyEmbeddingGenerator()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()