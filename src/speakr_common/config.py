"""Shared configuration models for infrastructure components."""

import os

from pydantic import BaseModel, computed_field


def env_bool(name: str, default: bool = False) -> bool:
    """Reads a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    bucket_name: str = "speakr-audio"
    secure: bool = False


class QueueConfig(BaseModel, frozen=True):
    """RabbitMQ queue configuration."""

    name: str
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    binding_keys: tuple[str, ...]
    dlq_name: str
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    port: int = 5672
    user: str
    password: str
    namespace: str = "speakr"
    max_workers: int = 4
    queue_config: QueueConfig | None = None

    @computed_field
    @property
    def exchange_name(self) -> str:
        """Topic exchange carrying every subject of the namespace."""
        return self.namespace


class PostgresConfig(BaseModel, frozen=True):
    """PostgreSQL connection configuration."""

    host: str
    port: int = 5432
    user: str
    password: str
    database: str = "speakr"

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full PostgreSQL connection URL."""
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class GeminiConfig(BaseModel, frozen=True):
    """Gemini embedding API configuration."""

    api_key: str
    model_name: str = "gemini-embedding-001"
    dimensions: int = 1536
    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_base_delay: float = 1.0


def load_rabbitmq_config(queue_config: QueueConfig | None = None) -> RabbitMQConfig:
    """Loads broker settings shared by every service."""
    return RabbitMQConfig(
        host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
        port=int(os.getenv("RABBITMQ_PORT", "5672")),
        user=os.getenv("RABBITMQ_USER", ""),
        password=os.getenv("RABBITMQ_PASSWORD", ""),
        namespace=os.getenv("SPEAKR_NAMESPACE", "speakr"),
        max_workers=int(os.getenv("WORKER_CONCURRENCY", "4")),
        queue_config=queue_config,
    )


def load_postgres_config() -> PostgresConfig:
    """Loads the vector database settings."""
    return PostgresConfig(
        host=os.getenv("POSTGRES_HOST", "postgres"),
        port=int(os.getenv("POSTGRES_PORT", "5432")),
        user=os.getenv("POSTGRES_USER", ""),
        password=os.getenv("POSTGRES_PASSWORD", ""),
        database=os.getenv("POSTGRES_DB", "speakr"),
    )


def load_gemini_config() -> GeminiConfig:
    """Loads the embedding API settings."""
    return GeminiConfig(
        api_key=os.getenv("GEMINI_API_KEY", ""),
        model_name=os.getenv("GEMINI_EMBEDDING_MODEL", "gemini-embedding-001"),
        dimensions=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")),
        timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30")),
        max_retries=int(os.getenv("GEMINI_MAX_RETRIES", "3")),
    )
