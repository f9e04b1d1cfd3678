"""Abstract interface for text embedding backends."""

from abc import ABC, abstractmethod

from speakr_common.context import OperationContext


class EmbeddingGenerator(ABC):
    """Turns text into a fixed-length vector."""

    @abstractmethod
    def generate(self, ctx: OperationContext, text: str) -> list[float]:
        """
        Generates an embedding for the given text.

        Implementations retry transient failures themselves and leave any
        truncation of over-long text to the model.

        Args:
            ctx: Context of the calling operation.
            text: The text to embed.

        Returns:
            The embedding vector.

        Raises:
            ExternalServiceError: If the embedding API call fails.
        """
