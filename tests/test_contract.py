"""Tests for subjects and payload models."""

import pytest
from pydantic import ValidationError

from speakr_common.contract import (
    COMMAND_MODELS,
    COMMANDS,
    EVENT_MODELS,
    EVENTS,
    RecordingFinishedEvent,
    StartRecordingCommand,
    StopRecordingCommand,
    Subjects,
    TranscriptionRunCommand,
)


def test_subject_format():
    subjects = Subjects("speakr")

    assert subjects.command("recording.start") == "speakr.command.recording.start"
    assert subjects.event("transcription.failed") == "speakr.event.transcription.failed"


def test_namespace_is_configurable():
    assert Subjects("staging").event("recording.started") == "staging.event.recording.started"


def test_parse_round_trips_every_name():
    subjects = Subjects("speakr")

    for name in COMMANDS:
        assert subjects.parse(subjects.command(name)) == ("command", name)
    for name in EVENTS:
        assert subjects.parse(subjects.event(name)) == ("event", name)


@pytest.mark.parametrize(
    "subject",
    ["other.event.recording.started", "speakr.query.x", "speakr.event", "speakr.command."],
)
def test_parse_rejects_foreign_or_malformed_subjects(subject):
    with pytest.raises(ValueError):
        Subjects("speakr").parse(subject)


def test_every_name_has_a_model():
    assert set(COMMAND_MODELS) == set(COMMANDS)
    assert set(EVENT_MODELS) == set(EVENTS)


def test_unknown_fields_are_ignored():
    command = StartRecordingCommand.model_validate(
        {"output_format": "mp3", "tags": ["a"], "added_later": 1}
    )

    assert command.output_format == "mp3"
    assert not hasattr(command, "added_later")


def test_defaults():
    command = StartRecordingCommand()

    assert command.output_format == "wav"
    assert command.tags == []
    assert command.metadata == {}
    assert TranscriptionRunCommand().audio_format == "wav"
    assert StopRecordingCommand(recording_id="r").transcribe_on_stop is False


def test_required_fields_are_enforced():
    with pytest.raises(ValidationError):
        StopRecordingCommand.model_validate({})
    with pytest.raises(ValidationError):
        RecordingFinishedEvent.model_validate({"recording_id": "r"})


def test_metadata_passes_through_unchanged():
    metadata = {"nested": {"list": [1, 2]}, "flag": True}

    event = RecordingFinishedEvent(
        recording_id="r", audio_file_path="s3://b/recordings/r", metadata=metadata
    )

    assert event.model_dump(mode="json")["metadata"] == metadata
