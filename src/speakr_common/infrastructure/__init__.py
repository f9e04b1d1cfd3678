"""Adapters shared by more than one service."""

from speakr_common.infrastructure.gemini_embedder import GeminiEmbeddingGenerator
from speakr_common.infrastructure.pgvector_store import PgVectorStore
from speakr_common.infrastructure.rabbitmq_broker import RabbitMQBroker
from speakr_common.infrastructure.rabbitmq_publisher import RabbitMQPublisher

__all__ = [
    "GeminiEmbeddingGenerator",
    "PgVectorStore",
    "RabbitMQBroker",
    "RabbitMQPublisher",
]
