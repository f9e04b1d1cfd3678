from speakr_embedder.domain.embedding_orchestrator import (
    LONG_TEXT_WARNING_CHARS,
    EmbeddingOrchestrator,
)

__all__ = ["LONG_TEXT_WARNING_CHARS", "EmbeddingOrchestrator"]
