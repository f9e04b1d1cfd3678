from speakr_common.infrastructure.interfaces.embedding_generator import (
    EmbeddingGenerator,
)
from speakr_common.infrastructure.interfaces.message_broker import (
    MessageBroker,
    MessageCallback,
    MessagePublisher,
)
from speakr_common.infrastructure.interfaces.vector_store import VectorStore

__all__ = [
    "EmbeddingGenerator",
    "MessageBroker",
    "MessageCallback",
    "MessagePublisher",
    "VectorStore",
]
