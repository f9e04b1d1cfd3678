"""Semantic search over stored transcripts."""

from speakr_common.context import OperationContext
from speakr_common.exceptions import EmbeddingError, InvalidCommandError, SearchError
from speakr_common.infrastructure.interfaces import EmbeddingGenerator, VectorStore
from speakr_common.logging import setup_logging
from speakr_common.models import SearchResult, TranscriptRecord

logger = setup_logging()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class QueryOrchestrator:
    """Embeds a query and ranks stored transcripts by cosine similarity."""

    def __init__(
        self,
        generator: EmbeddingGenerator,
        store: VectorStore,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ):
        self._generator = generator
        self._store = store
        self._default_limit = default_limit
        self._max_limit = max_limit

    def effective_limit(self, limit: int | None) -> int:
        """Missing or non-positive limits fall back to the default; large ones are clamped."""
        if limit is None or limit <= 0:
            return self._default_limit
        return min(limit, self._max_limit)

    def search(
        self,
        ctx: OperationContext,
        query_text: str,
        filter_tags: list[str] | None = None,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """
        Returns the transcripts most similar to the query text.

        Args:
            ctx: Context of the calling operation.
            query_text: Natural-language query.
            filter_tags: When non-empty, only transcripts sharing a tag match.
            limit: Maximum number of results.

        Returns:
            Results ordered by descending similarity.

        Raises:
            InvalidCommandError: If the query is blank. Nothing is called.
            EmbeddingError: If the query could not be embedded.
            SearchError: If the vector search failed.
        """
        if not query_text or not query_text.strip():
            raise InvalidCommandError("query", "query_text must not be blank")

        tags = [tag for tag in (filter_tags or []) if tag]
        effective = self.effective_limit(limit)
        logger.info(
            "Search requested",
            extra=ctx.log_extra(limit=effective, filter_tags=tags),
        )

        try:
            embedding = self._generator.generate(ctx, query_text)
        except Exception as e:
            logger.error("Query embedding failed", extra=ctx.log_extra(error=str(e)))
            raise EmbeddingError(str(e), e) from e

        try:
            results = self._store.search(ctx, embedding, tags, effective)
        except Exception as e:
            logger.error("Vector search failed", extra=ctx.log_extra(error=str(e)))
            raise SearchError(str(e), e) from e

        results = sorted(results, key=lambda r: r.similarity, reverse=True)[:effective]
        logger.info("Search completed", extra=ctx.log_extra(results_count=len(results)))
        return results

    def get_record(self, ctx: OperationContext, recording_id: str) -> TranscriptRecord | None:
        """Returns the stored record for a recording, or None."""
        try:
            return self._store.get(ctx.for_recording(recording_id), recording_id)
        except Exception as e:
            raise SearchError(str(e), e) from e
