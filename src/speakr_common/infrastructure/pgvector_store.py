"""PostgreSQL + pgvector implementation of the VectorStore interface."""

import json
import uuid
from collections.abc import Callable
from contextlib import AbstractContextManager

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError, OperationalError
from sqlmodel import Session, SQLModel

from speakr_common.context import OperationContext
from speakr_common.db_models import Transcription
from speakr_common.exceptions import ErrorCategory, VectorStoreError
from speakr_common.infrastructure.interfaces import VectorStore
from speakr_common.logging import setup_logging
from speakr_common.models import SearchResult, TranscriptRecord
from speakr_common.vectors import from_vector_literal, to_vector_literal

logger = setup_logging()

SessionFactory = Callable[[], AbstractContextManager[Session]]

_UPSERT = text(
    """
    INSERT INTO transcriptions (recording_id, transcribed_text, tags, metadata, embedding)
    VALUES (
        CAST(:recording_id AS uuid),
        :transcribed_text,
        CAST(:tags AS text[]),
        CAST(:metadata AS jsonb),
        CAST(:embedding AS vector)
    )
    ON CONFLICT (recording_id) DO UPDATE SET
        transcribed_text = EXCLUDED.transcribed_text,
        tags = EXCLUDED.tags,
        metadata = EXCLUDED.metadata,
        embedding = EXCLUDED.embedding,
        updated_at = NOW()
    """
)

_GET = text(
    """
    SELECT recording_id::text AS recording_id, transcribed_text, tags, metadata,
           embedding::text AS embedding
    FROM transcriptions
    WHERE recording_id = CAST(:recording_id AS uuid)
    """
)

_SEARCH = """
    SELECT recording_id::text AS recording_id, transcribed_text, tags, metadata,
           1 - (embedding <=> CAST(:embedding AS vector)) AS similarity
    FROM transcriptions
    {where}
    ORDER BY embedding <=> CAST(:embedding AS vector)
    LIMIT :limit
"""


def init_schema(engine: Engine) -> None:
    """Enables pgvector and creates the transcriptions table and its indexes."""
    with engine.begin() as connection:
        connection.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
    SQLModel.metadata.create_all(engine, tables=[Transcription.__table__])
    logger.info("Vector schema initialized", extra={"table": Transcription.__tablename__})


def _classify(error: Exception) -> ErrorCategory:
    if isinstance(error, OperationalError):
        return ErrorCategory.TRANSIENT
    if isinstance(error, (DataError, IntegrityError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.INTERNAL


class PgVectorStore(VectorStore):
    """
    Stores transcripts and embeddings in the `transcriptions` table.

    Similarity is reported as 1 - cosine distance so that higher always
    means more similar.
    """

    def __init__(self, session_factory: SessionFactory, dimensions: int):
        """
        Initializes the store.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
            dimensions: Expected embedding length.
        """
        self._session_factory = session_factory
        self._dimensions = dimensions

    def upsert(self, ctx: OperationContext, record: TranscriptRecord) -> None:
        if len(record.embedding) != self._dimensions:
            raise VectorStoreError(
                "upsert",
                f"embedding has {len(record.embedding)} dimensions, "
                f"expected {self._dimensions}",
                category=ErrorCategory.VALIDATION,
            )
        params = {
            "recording_id": record.recording_id,
            "transcribed_text": record.transcribed_text,
            "tags": list(record.tags),
            "metadata": json.dumps(record.metadata),
            "embedding": to_vector_literal(record.embedding),
        }
        try:
            with self._session_factory() as db_session:
                db_session.execute(_UPSERT, params)
                db_session.commit()
        except Exception as e:
            logger.exception("Failed to upsert transcript record", extra=ctx.log_extra())
            raise VectorStoreError("upsert", str(e), e, _classify(e)) from e

        logger.info(
            "Transcript record stored",
            extra=ctx.log_extra(
                tags_count=len(record.tags), dimensions=len(record.embedding)
            ),
        )

    def get(self, ctx: OperationContext, recording_id: str) -> TranscriptRecord | None:
        try:
            uuid.UUID(recording_id)
        except ValueError:
            logger.warning("Recording id is not a UUID", extra=ctx.log_extra())
            return None

        try:
            with self._session_factory() as db_session:
                row = db_session.execute(_GET, {"recording_id": recording_id}).mappings().first()
        except Exception as e:
            logger.exception("Failed to read transcript record", extra=ctx.log_extra())
            raise VectorStoreError("get", str(e), e, _classify(e)) from e

        if row is None:
            return None

        return TranscriptRecord(
            recording_id=row["recording_id"],
            transcribed_text=row["transcribed_text"],
            tags=list(row["tags"] or []),
            metadata=dict(row["metadata"] or {}),
            embedding=from_vector_literal(row["embedding"]),
        )

    def search(
        self,
        ctx: OperationContext,
        query_embedding: list[float],
        filter_tags: list[str],
        limit: int,
    ) -> list[SearchResult]:
        params: dict = {
            "embedding": to_vector_literal(query_embedding),
            "limit": limit,
        }
        where = ""
        if filter_tags:
            where = "WHERE tags && CAST(:filter_tags AS text[])"
            params["filter_tags"] = list(filter_tags)

        try:
            with self._session_factory() as db_session:
                rows = db_session.execute(
                    text(_SEARCH.format(where=where)), params
                ).mappings().all()
        except Exception as e:
            logger.exception("Similarity search failed", extra=ctx.log_extra())
            raise VectorStoreError("search", str(e), e, _classify(e)) from e

        return [
            SearchResult(
                recording_id=row["recording_id"],
                transcribed_text=row["transcribed_text"],
                tags=list(row["tags"] or []),
                metadata=dict(row["metadata"] or {}),
                similarity=float(row["similarity"]),
            )
            for row in rows
        ]
