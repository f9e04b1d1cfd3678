"""Gemini embedding service implementation."""

import httpx
from google import genai
from google.genai import errors, types

from speakr_common.config import GeminiConfig
from speakr_common.context import OperationContext
from speakr_common.exceptions import ErrorCategory, ExternalServiceError
from speakr_common.infrastructure.interfaces import EmbeddingGenerator
from speakr_common.logging import setup_logging
from speakr_common.retry import call_with_retry

logger = setup_logging()

SERVICE_NAME = "Gemini embeddings"


def classify_error(error: Exception) -> ErrorCategory:
    """Maps a Gemini SDK or transport error onto the shared error categories."""
    if isinstance(error, errors.APIError):
        if error.code in (401, 403):
            return ErrorCategory.AUTH
        if error.code in (408, 429) or error.code >= 500:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.VALIDATION
    if isinstance(error, httpx.TransportError):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.INTERNAL


class GeminiEmbeddingGenerator(EmbeddingGenerator):
    """Embedding generator using the Gemini embedding models."""

    def __init__(
        self,
        client: genai.Client,
        config: GeminiConfig,
        task_type: str = "RETRIEVAL_DOCUMENT",
    ):
        self._client = client
        self._config = config
        self._task_type = task_type

    def generate(self, ctx: OperationContext, text: str) -> list[float]:
        """
        Embeds text with the configured model and output dimensionality.

        Transient failures (rate limits, 5xx, network) are retried with
        backoff; authentication and request errors fail immediately.

        Raises:
            ExternalServiceError: If the API call ultimately fails.
        """
        embedding = call_with_retry(
            lambda: self._embed_once(text),
            ctx,
            name="gemini.embed_content",
            max_attempts=self._config.max_retries,
            base_delay=self._config.retry_base_delay,
        )
        logger.info(
            "Embedding generated",
            extra=ctx.log_extra(
                model=self._config.model_name, dimensions=len(embedding)
            ),
        )
        return embedding

    def _embed_once(self, text: str) -> list[float]:
        try:
            response = self._client.models.embed_content(
                model=self._config.model_name,
                contents=text,
                config=types.EmbedContentConfig(
                    task_type=self._task_type,
                    output_dimensionality=self._config.dimensions,
                ),
            )
        except Exception as e:
            raise ExternalServiceError(
                SERVICE_NAME, f"embed_content failed: {e}", classify_error(e), cause=e
            ) from e

        if not response.embeddings or not response.embeddings[0].values:
            raise ExternalServiceError(
                SERVICE_NAME, "API returned an empty embedding", ErrorCategory.TRANSIENT
            )

        values = list(response.embeddings[0].values)
        if len(values) != self._config.dimensions:
            raise ExternalServiceError(
                SERVICE_NAME,
                f"expected {self._config.dimensions} dimensions, got {len(values)}",
                ErrorCategory.INTERNAL,
            )
        return values
