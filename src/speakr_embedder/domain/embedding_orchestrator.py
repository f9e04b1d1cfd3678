"""Embeds transcripts and persists them for semantic search."""

from typing import Any

from speakr_common.context import OperationContext
from speakr_common.contract import EMBEDDING_SUCCEEDED, EmbeddingSucceededEvent
from speakr_common.events import EventEmitter
from speakr_common.exceptions import EmbeddingError, InvalidCommandError
from speakr_common.infrastructure.interfaces import EmbeddingGenerator, VectorStore
from speakr_common.logging import setup_logging
from speakr_common.models import TranscriptRecord

logger = setup_logging()

LONG_TEXT_WARNING_CHARS = 8000


class EmbeddingOrchestrator:
    """Generates an embedding for each transcript and upserts the record."""

    def __init__(
        self,
        generator: EmbeddingGenerator,
        store: VectorStore,
        emitter: EventEmitter | None = None,
    ):
        """
        Args:
            generator: Embedding backend.
            store: Vector store receiving the records.
            emitter: When set, `embedding.succeeded` is published after each upsert.
        """
        self._generator = generator
        self._store = store
        self._emitter = emitter

    def process_transcription(
        self,
        ctx: OperationContext,
        recording_id: str,
        transcribed_text: str,
        tags: list[str],
        metadata: dict[str, Any] | None = None,
    ) -> TranscriptRecord:
        """
        Embeds a transcript and stores it, replacing any previous record.

        Returns:
            The stored record.

        Raises:
            InvalidCommandError: If the id or the text is empty. The embedding
                backend is not called in that case.
            EmbeddingError: If the embedding could not be generated.
            VectorStoreError: If the record could not be stored.
        """
        ctx = ctx.for_recording(recording_id)
        if not recording_id or not recording_id.strip():
            raise InvalidCommandError("embedding", "recording_id is required")
        if not transcribed_text or not transcribed_text.strip():
            raise InvalidCommandError("embedding", "transcribed_text is empty")

        if len(transcribed_text) > LONG_TEXT_WARNING_CHARS:
            logger.warning(
                "Transcript is long and may be truncated by the embedding model",
                extra=ctx.log_extra(text_length=len(transcribed_text)),
            )

        try:
            embedding = self._generator.generate(ctx, transcribed_text)
        except Exception as e:
            logger.error("Embedding generation failed", extra=ctx.log_extra(error=str(e)))
            raise EmbeddingError(str(e), e) from e

        record = TranscriptRecord(
            recording_id=recording_id,
            transcribed_text=transcribed_text,
            tags=list(tags),
            metadata=dict(metadata or {}),
            embedding=embedding,
        )
        self._store.upsert(ctx, record)

        if self._emitter is not None:
            self._emitter.emit(
                ctx,
                EMBEDDING_SUCCEEDED,
                EmbeddingSucceededEvent(
                    recording_id=recording_id,
                    embedding_dimensions=len(embedding),
                    tags=record.tags,
                    metadata=record.metadata,
                ),
            )

        logger.info(
            "Transcript indexed",
            extra=ctx.log_extra(dimensions=len(embedding), tags_count=len(record.tags)),
        )
        return record

    def get_record(self, ctx: OperationContext, recording_id: str) -> TranscriptRecord | None:
        """Returns the stored record, or None when nothing was indexed for the id."""
        return self._store.get(ctx.for_recording(recording_id), recording_id)
