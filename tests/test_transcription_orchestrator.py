"""Tests for stored and inline transcription."""

import base64
import uuid

import pytest

from speakr_common.contract import TranscriptionRunCommand
from speakr_common.exceptions import (
    ErrorCategory,
    ExternalServiceError,
    InvalidCommandError,
    TranscriptionError,
)
from speakr_common.worker import should_requeue
from speakr_transcriber.domain import TranscriptionOrchestrator

from conftest import SAMPLE_AUDIO, transient_api_error


@pytest.fixture
def orchestrator(object_store, transcription_service, emitter):
    return TranscriptionOrchestrator(object_store, transcription_service, emitter)


def _inline(audio: bytes) -> str:
    return base64.b64encode(audio).decode("ascii")


# -------------------------------------------------------------- #
# Validation
# -------------------------------------------------------------- #


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"recording_id": "", "audio_data": ""},
        {"recording_id": "rec-1", "audio_data": "UklGRg=="},
    ],
)
def test_requires_exactly_one_source(orchestrator, ctx, publisher, transcription_service, fields):
    with pytest.raises(InvalidCommandError):
        orchestrator.transcribe(ctx, TranscriptionRunCommand(**fields))

    assert publisher.messages == []
    assert transcription_service.calls == []


# -------------------------------------------------------------- #
# Stored recordings
# -------------------------------------------------------------- #


def test_stored_recording_succeeds(orchestrator, ctx, publisher, object_store, transcription_service):
    object_store.objects["rec-1"] = (SAMPLE_AUDIO, "mp3")

    event = orchestrator.transcribe(
        ctx,
        TranscriptionRunCommand(recording_id="rec-1", tags=["x"], metadata={"k": "v"}),
    )

    assert event.transcribed_text == "hello world"
    assert transcription_service.calls == [(SAMPLE_AUDIO, "mp3")]
    assert publisher.payloads("transcription.succeeded") == [
        {
            "recording_id": "rec-1",
            "transcribed_text": "hello world",
            "tags": ["x"],
            "metadata": {"k": "v"},
        }
    ]


def test_missing_stored_recording_publishes_failed(orchestrator, ctx, publisher, transcription_service):
    with pytest.raises(TranscriptionError) as exc_info:
        orchestrator.transcribe(ctx, TranscriptionRunCommand(recording_id="missing"))

    assert publisher.names() == ["transcription.failed"]
    assert publisher.payloads("transcription.failed")[0]["recording_id"] == "missing"
    assert transcription_service.calls == []
    assert exc_info.value.category == ErrorCategory.NOT_FOUND
    assert exc_info.value.reported is True


# -------------------------------------------------------------- #
# Inline audio
# -------------------------------------------------------------- #


def test_inline_audio_gets_a_fresh_recording_id(orchestrator, ctx, publisher, transcription_service):
    event = orchestrator.transcribe(
        ctx, TranscriptionRunCommand(audio_data=_inline(SAMPLE_AUDIO), audio_format="wav")
    )

    uuid.UUID(event.recording_id)
    assert transcription_service.calls == [(SAMPLE_AUDIO, "wav")]
    assert publisher.payloads("transcription.succeeded")[0]["recording_id"] == event.recording_id


def test_invalid_base64_is_a_reported_validation_failure(orchestrator, ctx, publisher, transcription_service):
    with pytest.raises(TranscriptionError) as exc_info:
        orchestrator.transcribe(ctx, TranscriptionRunCommand(audio_data="not base64!!"))

    assert exc_info.value.category == ErrorCategory.VALIDATION
    assert should_requeue(exc_info.value) is False
    assert publisher.names() == ["transcription.failed"]
    assert transcription_service.calls == []


# -------------------------------------------------------------- #
# Transcription outcomes
# -------------------------------------------------------------- #


@pytest.mark.parametrize("text", ["", "   \n\t"])
def test_blank_text_is_a_failure(orchestrator, ctx, publisher, transcription_service, text):
    transcription_service.text = text

    with pytest.raises(TranscriptionError):
        orchestrator.transcribe(ctx, TranscriptionRunCommand(audio_data=_inline(SAMPLE_AUDIO)))

    assert publisher.names() == ["transcription.failed"]


def test_service_error_keeps_its_category_and_is_not_requeued(orchestrator, ctx, publisher, transcription_service):
    transcription_service.error = transient_api_error()

    with pytest.raises(TranscriptionError) as exc_info:
        orchestrator.transcribe(ctx, TranscriptionRunCommand(audio_data=_inline(SAMPLE_AUDIO)))

    error = exc_info.value
    assert error.category == ErrorCategory.TRANSIENT
    assert isinstance(error.cause, ExternalServiceError)
    # The failure was reported, so redelivery would duplicate the outcome.
    assert should_requeue(error) is False
    assert publisher.names() == ["transcription.failed"]


def test_unpublished_failure_stays_retryable(orchestrator, ctx, publisher, transcription_service):
    transcription_service.error = transient_api_error()
    publisher.fail_on.add("speakr.event.transcription.failed")

    with pytest.raises(TranscriptionError) as exc_info:
        orchestrator.transcribe(ctx, TranscriptionRunCommand(audio_data=_inline(SAMPLE_AUDIO)))

    assert exc_info.value.reported is False
    assert should_requeue(exc_info.value) is True


def test_exactly_one_outcome_event_per_attempt(orchestrator, ctx, publisher, object_store):
    object_store.objects["rec-1"] = (SAMPLE_AUDIO, "wav")

    orchestrator.transcribe(ctx, TranscriptionRunCommand(recording_id="rec-1"))

    assert publisher.names() == ["transcription.succeeded"]
