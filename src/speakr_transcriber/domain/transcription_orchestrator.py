"""Turns stored or inline audio into a transcription outcome event."""

import base64
import binascii
import uuid
from typing import NoReturn

from speakr_common.context import OperationContext
from speakr_common.contract import (
    TRANSCRIPTION_FAILED,
    TRANSCRIPTION_SUCCEEDED,
    TranscriptionFailedEvent,
    TranscriptionRunCommand,
    TranscriptionSucceededEvent,
)
from speakr_common.events import EventEmitter
from speakr_common.exceptions import (
    ErrorCategory,
    EventPublishError,
    InvalidCommandError,
    TranscriptionError,
)
from speakr_common.logging import setup_logging

from speakr_transcriber.infrastructure.interfaces import (
    ObjectStore,
    TranscriptionService,
)

logger = setup_logging()


class TranscriptionOrchestrator:
    """
    Runs one transcription attempt and publishes exactly one outcome event.

    The same code path serves `transcription.run` commands from the bus and
    the in-process call made when a recording is stopped with
    `transcribe_on_stop`.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        transcription_service: TranscriptionService,
        emitter: EventEmitter,
    ):
        self._object_store = object_store
        self._transcription_service = transcription_service
        self._emitter = emitter

    def transcribe(
        self, ctx: OperationContext, command: TranscriptionRunCommand
    ) -> TranscriptionSucceededEvent:
        """
        Transcribes the audio referenced or carried by the command.

        Args:
            ctx: Context of the calling operation.
            command: Exactly one of `recording_id` and `audio_data` must be set.

        Returns:
            The published `transcription.succeeded` event.

        Raises:
            InvalidCommandError: If the command names no source or both sources.
                Nothing is published in that case.
            TranscriptionError: If the attempt failed. A `transcription.failed`
                event has been published unless `reported` is False.
            EventPublishError: If the success event could not be published.
        """
        has_id = bool(command.recording_id)
        has_inline = bool(command.audio_data)
        if has_id == has_inline:
            raise InvalidCommandError(
                "transcription",
                "exactly one of recording_id and audio_data is required",
            )

        recording_id = command.recording_id if has_id else str(uuid.uuid4())
        ctx = ctx.for_recording(recording_id)

        logger.info(
            "Transcription started",
            extra=ctx.log_extra(source="stored" if has_id else "inline"),
        )

        if has_id:
            try:
                audio_data, audio_format = self._object_store.retrieve_audio(
                    ctx, recording_id
                )
            except Exception as e:
                self._fail(ctx, command, TranscriptionError(recording_id, str(e), e))
        else:
            try:
                audio_data = base64.b64decode(command.audio_data, validate=True)
            except (binascii.Error, ValueError) as e:
                self._fail(
                    ctx,
                    command,
                    TranscriptionError(
                        recording_id,
                        f"audio_data is not valid base64: {e}",
                        e,
                        ErrorCategory.VALIDATION,
                    ),
                )
            audio_format = command.audio_format

        if not audio_data:
            self._fail(
                ctx,
                command,
                TranscriptionError(recording_id, "audio is empty", category=ErrorCategory.VALIDATION),
            )

        try:
            text = self._transcription_service.transcribe(ctx, audio_data, audio_format)
        except Exception as e:
            self._fail(ctx, command, TranscriptionError(recording_id, str(e), e))

        if not text or not text.strip():
            self._fail(
                ctx,
                command,
                TranscriptionError(recording_id, "transcription returned no text"),
            )

        event = TranscriptionSucceededEvent(
            recording_id=recording_id,
            transcribed_text=text,
            tags=command.tags,
            metadata=command.metadata,
        )
        self._emitter.emit(ctx, TRANSCRIPTION_SUCCEEDED, event)
        logger.info(
            "Transcription succeeded",
            extra=ctx.log_extra(text_length=len(text)),
        )
        return event

    def _fail(
        self,
        ctx: OperationContext,
        command: TranscriptionRunCommand,
        error: TranscriptionError,
    ) -> NoReturn:
        """Publishes `transcription.failed` for the error and raises it."""
        logger.error(
            "Transcription failed",
            extra=ctx.log_extra(error=error.reason, category=error.category.value),
        )
        event = TranscriptionFailedEvent(
            recording_id=ctx.recording_id or "",
            error=error.reason,
            tags=command.tags,
            metadata=command.metadata,
        )
        try:
            self._emitter.emit(ctx, TRANSCRIPTION_FAILED, event)
        except EventPublishError:
            logger.exception(
                "Could not publish transcription failure", extra=ctx.log_extra()
            )
        else:
            error.reported = True
        raise error
