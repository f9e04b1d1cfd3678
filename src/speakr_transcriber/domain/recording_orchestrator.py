"""Lifecycle of capture sessions: start, stop and cancel."""

import uuid
from collections.abc import Callable

from speakr_common.context import OperationContext, new_correlation_id
from speakr_common.contract import (
    RECORDING_CANCELLED,
    RECORDING_FINISHED,
    RECORDING_STARTED,
    CancelRecordingCommand,
    RecordingCancelledEvent,
    RecordingFinishedEvent,
    RecordingStartedEvent,
    StartRecordingCommand,
    StopRecordingCommand,
    TranscriptionRunCommand,
)
from speakr_common.events import EventEmitter
from speakr_common.exceptions import InvalidCommandError, RecorderError
from speakr_common.logging import setup_logging

from speakr_transcriber.domain.models import SUPPORTED_FORMATS, RecordingSession
from speakr_transcriber.domain.session_registry import SessionRegistry
from speakr_transcriber.domain.transcription_orchestrator import (
    TranscriptionOrchestrator,
)
from speakr_transcriber.infrastructure.interfaces import AudioRecorder, ObjectStore

logger = setup_logging()


def new_recording_id() -> str:
    return str(uuid.uuid4())


class RecordingOrchestrator:
    """
    Drives the recorder, the object store and the event bus for one capture.

    Recording ids are allocated here. Tags and metadata given at start are
    kept in the session registry so that `recording.finished` and the
    transcription that follows carry them.
    """

    def __init__(
        self,
        recorder: AudioRecorder,
        object_store: ObjectStore,
        emitter: EventEmitter,
        transcription: TranscriptionOrchestrator,
        registry: SessionRegistry,
        id_factory: Callable[[], str] = new_recording_id,
    ):
        self._recorder = recorder
        self._object_store = object_store
        self._emitter = emitter
        self._transcription = transcription
        self._registry = registry
        self._id_factory = id_factory

    def start_recording(
        self, ctx: OperationContext, command: StartRecordingCommand
    ) -> str:
        """
        Starts a new capture and publishes `recording.started`.

        Returns:
            The allocated recording id.

        Raises:
            InvalidCommandError: If the output format is not supported.
            RecordingAlreadyExistsError: If the allocated id is already active.
            RecorderError: If the capture could not be started.
            EventPublishError: If `recording.started` could not be published;
                the capture is cancelled first.
        """
        if command.output_format not in SUPPORTED_FORMATS:
            raise InvalidCommandError(
                "recording start",
                f"unsupported output_format '{command.output_format}'",
            )

        session = RecordingSession(
            recording_id=self._id_factory(),
            output_format=command.output_format,
            tags=command.tags,
            metadata=command.metadata,
            correlation_id=ctx.correlation_id,
        )
        ctx = ctx.for_recording(session.recording_id)

        self._cancel_abandoned()
        self._registry.reserve(session)
        try:
            self._recorder.start(ctx, session.recording_id, session.output_format)
        except Exception as e:
            self._registry.release(session.recording_id)
            logger.error(
                "Recorder failed to start", extra=ctx.log_extra(error=str(e))
            )
            if isinstance(e, RecorderError):
                raise
            raise RecorderError(session.recording_id, str(e), e) from e

        try:
            self._emitter.emit(
                ctx,
                RECORDING_STARTED,
                RecordingStartedEvent(
                    recording_id=session.recording_id,
                    tags=session.tags,
                    metadata=session.metadata,
                ),
            )
        except Exception:
            self._registry.release(session.recording_id)
            self._recorder.cancel(ctx, session.recording_id)
            raise

        logger.info(
            "Recording started",
            extra=ctx.log_extra(output_format=session.output_format, tags=session.tags),
        )
        return session.recording_id

    def stop_recording(
        self, ctx: OperationContext, command: StopRecordingCommand
    ) -> str:
        """
        Finalizes a capture, stores it and publishes `recording.finished`.

        When `transcribe_on_stop` is set the transcription runs in-process
        afterwards with the same recording id, tags and metadata.

        Returns:
            The location of the stored audio.

        Raises:
            RecordingNotFoundError: If the recording is not active.
            RecorderError: If the capture produced no audio.
            StorageUploadError: If storing the audio failed. The captured
                audio stays registered so that a retried stop can finish.
            EventPublishError: If `recording.finished` could not be
                published; the audio is kept the same way.
            TranscriptionError: If the follow-up transcription failed;
                `recording.finished` stays published.
        """
        ctx = ctx.for_recording(command.recording_id)
        self._cancel_abandoned()
        session = self._registry.pop(command.recording_id)

        if session.captured_audio is None:
            audio_data = self._recorder.stop(ctx, session.recording_id)
        else:
            audio_data = session.captured_audio
            logger.info(
                "Finishing stop with previously captured audio",
                extra=ctx.log_extra(size_bytes=len(audio_data)),
            )

        metadata = {**session.metadata, **command.metadata}
        try:
            location = self._object_store.store_audio(
                ctx, session.recording_id, audio_data, session.output_format
            )
            self._emitter.emit(
                ctx,
                RECORDING_FINISHED,
                RecordingFinishedEvent(
                    recording_id=session.recording_id,
                    audio_file_path=location,
                    tags=session.tags,
                    metadata=metadata,
                ),
            )
        except Exception as e:
            # The capture process is gone, so the bytes only survive here.
            self._registry.reserve(
                session.model_copy(update={"captured_audio": audio_data})
            )
            logger.error(
                "Captured audio kept for a retried stop",
                extra=ctx.log_extra(error=str(e), size_bytes=len(audio_data)),
            )
            raise
        logger.info(
            "Recording finished",
            extra=ctx.log_extra(
                audio_file_path=location,
                size_bytes=len(audio_data),
                transcribe_on_stop=command.transcribe_on_stop,
            ),
        )

        if command.transcribe_on_stop:
            self._transcription.transcribe(
                ctx,
                TranscriptionRunCommand(
                    recording_id=session.recording_id,
                    audio_format=session.output_format,
                    tags=session.tags,
                    metadata=metadata,
                ),
            )

        return location

    def cancel_recording(
        self, ctx: OperationContext, command: CancelRecordingCommand
    ) -> None:
        """
        Discards a capture and publishes `recording.cancelled`.

        Raises:
            RecordingNotFoundError: If the recording is not active.
            RecorderError: If the capture could not be killed.
        """
        ctx = ctx.for_recording(command.recording_id)
        self._cancel_abandoned()
        session = self._registry.pop(command.recording_id)

        if session.captured_audio is None:
            self._recorder.cancel(ctx, session.recording_id)
        self._emitter.emit(
            ctx,
            RECORDING_CANCELLED,
            RecordingCancelledEvent(recording_id=session.recording_id),
        )
        logger.info("Recording cancelled", extra=ctx.log_extra())

    def active_recordings(self) -> list[str]:
        self._cancel_abandoned()
        return self._registry.active_ids()

    def _cancel_abandoned(self) -> None:
        """
        Cancels sessions that outlived the registry's maximum age.

        ffmpeg stops on its own at the duration cap, but the session, the
        running capture entry and the temp file remain until someone stops or
        cancels them. Sessions nobody came back for are cleaned up here.
        """
        for session in self._registry.pop_expired():
            ctx = OperationContext(
                correlation_id=session.correlation_id or new_correlation_id(),
                recording_id=session.recording_id,
            )
            logger.warning(
                "Cancelling abandoned recording",
                extra=ctx.log_extra(started_at=session.started_at.isoformat()),
            )
            try:
                if session.captured_audio is None:
                    self._recorder.cancel(ctx, session.recording_id)
                self._emitter.emit(
                    ctx,
                    RECORDING_CANCELLED,
                    RecordingCancelledEvent(recording_id=session.recording_id),
                )
            except Exception:
                logger.exception(
                    "Cleanup of abandoned recording failed", extra=ctx.log_extra()
                )
