from datetime import datetime
from typing import Any, List
from uuid import UUID

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, DateTime, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import ARRAY, Text
from sqlmodel import Field, SQLModel

EMBEDDING_DIMENSIONS = 1536


class Transcription(SQLModel, table=True):
    __tablename__ = "transcriptions"
    __table_args__ = (
        Index("idx_transcriptions_tags", "tags", postgresql_using="gin"),
        Index(
            "idx_transcriptions_embedding_cosine",
            "embedding",
            postgresql_using="ivfflat",
            postgresql_with={"lists": 100},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
        Index("idx_transcriptions_created_at", "created_at"),
    )

    recording_id: UUID = Field(primary_key=True)
    transcribed_text: str = Field(sa_column=Column(Text, nullable=False))
    tags: List[str] = Field(
        default_factory=list,
        sa_column=Column(ARRAY(Text), nullable=False, server_default="{}"),
    )
    metadata_: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("metadata", JSONB, nullable=False, server_default="{}"),
    )
    embedding: List[float] = Field(
        sa_column=Column(Vector(EMBEDDING_DIMENSIONS), nullable=False)
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), nullable=False, server_default=func.now()
        ),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
        ),
    )
