"""Tests for the external service adapters with mocked clients."""

import json
import uuid
from contextlib import contextmanager
from types import SimpleNamespace
from unittest.mock import MagicMock

import assemblyai as aai
import httpx
import pytest
from google.genai import errors
from sqlalchemy.exc import OperationalError

from speakr_common.config import GeminiConfig
from speakr_common.exceptions import (
    ErrorCategory,
    ExternalServiceError,
    StorageDownloadError,
    StorageUploadError,
    VectorStoreError,
)
from speakr_common.infrastructure import GeminiEmbeddingGenerator, PgVectorStore
from speakr_common.infrastructure.gemini_embedder import classify_error
from speakr_common.models import TranscriptRecord
from speakr_transcriber.config import AssemblyAIConfig
from speakr_transcriber.infrastructure import AssemblyAITranscriber, MinioObjectStore
from speakr_transcriber.infrastructure.assemblyai_transcriber import classify_message
from speakr_transcriber.infrastructure.minio_storage import format_from_content_type

# -------------------------------------------------------------- #
# MinIO
# -------------------------------------------------------------- #


def test_store_audio_uses_recording_key_and_content_type(ctx):
    client = MagicMock()
    store = MinioObjectStore(client, "speakr-audio")

    location = store.store_audio(ctx, "rec-1", b"abc", "mp3")

    assert location == "s3://speakr-audio/recordings/rec-1"
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["object_name"] == "recordings/rec-1"
    assert kwargs["length"] == 3
    assert kwargs["content_type"] == "audio/mp3"


def test_store_audio_failure_is_upload_error(ctx):
    client = MagicMock()
    client.put_object.side_effect = ConnectionError("refused")

    with pytest.raises(StorageUploadError):
        MinioObjectStore(client, "b").store_audio(ctx, "rec-1", b"abc", "wav")


def test_retrieve_audio_returns_bytes_and_format(ctx):
    response = MagicMock()
    response.data = b"abc"
    response.headers = {"Content-Type": "audio/mp3"}
    client = MagicMock()
    client.get_object.return_value = response

    assert MinioObjectStore(client, "b").retrieve_audio(ctx, "rec-1") == (b"abc", "mp3")
    client.get_object.assert_called_once_with("b", "recordings/rec-1")
    response.release_conn.assert_called_once()


def test_retrieve_audio_failure_is_transient_download_error(ctx):
    client = MagicMock()
    client.get_object.side_effect = ConnectionError("refused")

    with pytest.raises(StorageDownloadError) as exc_info:
        MinioObjectStore(client, "b").retrieve_audio(ctx, "rec-1")

    assert exc_info.value.category == ErrorCategory.TRANSIENT


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("audio/wav", "wav"),
        ("audio/mpeg", "mp3"),
        ("audio/x-wav; charset=binary", "wav"),
        ("application/octet-stream", "wav"),
        (None, "wav"),
    ],
)
def test_format_from_content_type(content_type, expected):
    assert format_from_content_type(content_type) == expected


# -------------------------------------------------------------- #
# AssemblyAI
# -------------------------------------------------------------- #


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Authentication error, API token missing/invalid", ErrorCategory.AUTH),
        ("HTTP 429 Too Many Requests", ErrorCategory.TRANSIENT),
        ("Read timed out", ErrorCategory.TRANSIENT),
        ("File does not appear to contain audio", ErrorCategory.VALIDATION),
    ],
)
def test_assemblyai_message_classification(message, expected):
    assert classify_message(message, ErrorCategory.VALIDATION) == expected


def _assemblyai(transcriber):
    return AssemblyAITranscriber(transcriber, AssemblyAIConfig(api_key="k", retry_base_delay=0))


def test_assemblyai_returns_text(ctx):
    transcriber = MagicMock()
    transcriber.transcribe.return_value = SimpleNamespace(
        status=aai.TranscriptStatus.completed, text="hello", error=None
    )

    assert _assemblyai(transcriber).transcribe(ctx, b"audio", "wav") == "hello"
    assert transcriber.transcribe.call_args.args[0].endswith(".wav")


def test_assemblyai_rejected_audio_is_not_retried(ctx):
    transcriber = MagicMock()
    transcriber.transcribe.return_value = SimpleNamespace(
        status=aai.TranscriptStatus.error, text=None, error="File does not appear to contain audio"
    )

    with pytest.raises(ExternalServiceError) as exc_info:
        _assemblyai(transcriber).transcribe(ctx, b"audio", "wav")

    assert exc_info.value.category == ErrorCategory.VALIDATION
    assert transcriber.transcribe.call_count == 1


def test_assemblyai_network_errors_are_retried(ctx):
    transcriber = MagicMock()
    transcriber.transcribe.side_effect = [
        httpx.ConnectError("connection refused"),
        SimpleNamespace(status=aai.TranscriptStatus.completed, text="ok", error=None),
    ]

    assert _assemblyai(transcriber).transcribe(ctx, b"audio", "wav") == "ok"
    assert transcriber.transcribe.call_count == 2


# -------------------------------------------------------------- #
# Gemini
# -------------------------------------------------------------- #


def _api_error(code):
    error = MagicMock(spec=errors.APIError)
    error.code = code
    return error


@pytest.mark.parametrize(
    "code, expected",
    [
        (401, ErrorCategory.AUTH),
        (403, ErrorCategory.AUTH),
        (429, ErrorCategory.TRANSIENT),
        (503, ErrorCategory.TRANSIENT),
        (400, ErrorCategory.VALIDATION),
    ],
)
def test_gemini_error_classification(code, expected):
    assert classify_error(_api_error(code)) == expected


def test_gemini_transport_errors_are_transient():
    assert classify_error(httpx.ReadTimeout("slow")) == ErrorCategory.TRANSIENT


def _embedding_response(values):
    return SimpleNamespace(embeddings=[SimpleNamespace(values=values)])


def _gemini(client, dimensions=4):
    config = GeminiConfig(api_key="k", dimensions=dimensions, retry_base_delay=0)
    return GeminiEmbeddingGenerator(client, config)


def test_gemini_requests_configured_dimensions(ctx):
    client = MagicMock()
    client.models.embed_content.return_value = _embedding_response([0.1, 0.2, 0.3, 0.4])

    assert _gemini(client).generate(ctx, "text") == [0.1, 0.2, 0.3, 0.4]
    kwargs = client.models.embed_content.call_args.kwargs
    assert kwargs["contents"] == "text"
    assert kwargs["config"].output_dimensionality == 4


def test_gemini_dimension_mismatch_is_an_error(ctx):
    client = MagicMock()
    client.models.embed_content.return_value = _embedding_response([0.1, 0.2])

    with pytest.raises(ExternalServiceError) as exc_info:
        _gemini(client).generate(ctx, "text")

    assert exc_info.value.category == ErrorCategory.INTERNAL


def test_gemini_retries_transport_errors(ctx):
    client = MagicMock()
    client.models.embed_content.side_effect = [
        httpx.ConnectError("refused"),
        _embedding_response([1.0, 0.0, 0.0, 0.0]),
    ]

    assert _gemini(client).generate(ctx, "text") == [1.0, 0.0, 0.0, 0.0]
    assert client.models.embed_content.call_count == 2


# -------------------------------------------------------------- #
# pgvector
# -------------------------------------------------------------- #


@pytest.fixture
def db_session():
    return MagicMock()


@pytest.fixture
def pg_store(db_session):
    @contextmanager
    def session_factory():
        yield db_session

    return PgVectorStore(session_factory, dimensions=3)


def _record(embedding):
    return TranscriptRecord(
        recording_id=str(uuid.uuid4()),
        transcribed_text="hello",
        tags=["a", "b"],
        metadata={"k": "v"},
        embedding=embedding,
    )


def test_upsert_sends_vector_literal_and_commits(pg_store, db_session, ctx):
    record = _record([0.5, 0.25, 1.0])

    pg_store.upsert(ctx, record)

    statement, params = db_session.execute.call_args.args
    assert "ON CONFLICT (recording_id) DO UPDATE" in str(statement)
    assert params["embedding"] == "[0.5,0.25,1.0]"
    assert params["tags"] == ["a", "b"]
    assert json.loads(params["metadata"]) == {"k": "v"}
    db_session.commit.assert_called_once()


def test_upsert_rejects_wrong_dimension(pg_store, db_session, ctx):
    with pytest.raises(VectorStoreError) as exc_info:
        pg_store.upsert(ctx, _record([1.0, 2.0]))

    assert exc_info.value.category == ErrorCategory.VALIDATION
    db_session.execute.assert_not_called()


def test_connection_failure_is_transient(pg_store, db_session, ctx):
    db_session.execute.side_effect = OperationalError("INSERT", {}, Exception("down"))

    with pytest.raises(VectorStoreError) as exc_info:
        pg_store.upsert(ctx, _record([1.0, 2.0, 3.0]))

    assert exc_info.value.category == ErrorCategory.TRANSIENT


def test_get_decodes_stored_embedding(pg_store, db_session, ctx):
    recording_id = str(uuid.uuid4())
    db_session.execute.return_value.mappings.return_value.first.return_value = {
        "recording_id": recording_id,
        "transcribed_text": "hello",
        "tags": ["a"],
        "metadata": {"k": "v"},
        "embedding": "[1,2,3]",
    }

    record = pg_store.get(ctx, recording_id)

    assert record.embedding == [1.0, 2.0, 3.0]
    assert record.metadata == {"k": "v"}


def test_get_missing_returns_none(pg_store, db_session, ctx):
    db_session.execute.return_value.mappings.return_value.first.return_value = None

    assert pg_store.get(ctx, str(uuid.uuid4())) is None


def test_get_non_uuid_id_returns_none_without_query(pg_store, db_session, ctx):
    assert pg_store.get(ctx, "not-a-uuid") is None
    db_session.execute.assert_not_called()


def test_search_filters_on_tag_overlap(pg_store, db_session, ctx):
    db_session.execute.return_value.mappings.return_value.all.return_value = [
        {
            "recording_id": "r1",
            "transcribed_text": "hello",
            "tags": ["a"],
            "metadata": None,
            "similarity": 0.9,
        }
    ]

    results = pg_store.search(ctx, [1.0, 0.0, 0.0], ["a"], 5)

    statement, params = db_session.execute.call_args.args
    assert "tags && CAST(:filter_tags AS text[])" in str(statement)
    assert params == {"embedding": "[1.0,0.0,0.0]", "limit": 5, "filter_tags": ["a"]}
    assert results[0].similarity == 0.9
    assert results[0].metadata == {}


def test_search_without_tags_has_no_filter(pg_store, db_session, ctx):
    db_session.execute.return_value.mappings.return_value.all.return_value = []

    pg_store.search(ctx, [1.0, 0.0, 0.0], [], 10)

    statement, params = db_session.execute.call_args.args
    assert "WHERE" not in str(statement)
    assert "filter_tags" not in params
