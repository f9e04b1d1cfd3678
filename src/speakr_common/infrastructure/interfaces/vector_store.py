"""Abstract interface for transcript vector storage."""

from abc import ABC, abstractmethod

from speakr_common.context import OperationContext
from speakr_common.models import SearchResult, TranscriptRecord


class VectorStore(ABC):
    """Stores transcript records and runs similarity search over them."""

    @abstractmethod
    def upsert(self, ctx: OperationContext, record: TranscriptRecord) -> None:
        """
        Inserts a record or overwrites the one with the same recording id.

        Raises:
            VectorStoreError: If the write fails.
        """

    @abstractmethod
    def get(self, ctx: OperationContext, recording_id: str) -> TranscriptRecord | None:
        """
        Fetches a record by recording id.

        Returns:
            The record, or None if no record exists.

        Raises:
            VectorStoreError: If the read fails.
        """

    @abstractmethod
    def search(
        self,
        ctx: OperationContext,
        query_embedding: list[float],
        filter_tags: list[str],
        limit: int,
    ) -> list[SearchResult]:
        """
        Returns the records most similar to the query embedding.

        Args:
            ctx: Context of the calling operation.
            query_embedding: The query vector.
            filter_tags: When non-empty, only records sharing at least one tag
                are considered.
            limit: Maximum number of results.

        Returns:
            Results ordered by descending cosine similarity.

        Raises:
            VectorStoreError: If the query fails.
        """
