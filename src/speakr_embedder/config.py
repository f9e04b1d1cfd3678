"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from speakr_common.config import (
    GeminiConfig,
    PostgresConfig,
    QueueConfig,
    RabbitMQConfig,
    env_bool,
    load_gemini_config,
    load_postgres_config,
    load_rabbitmq_config,
)
from speakr_common.contract import TRANSCRIPTION_SUCCEEDED, Subjects


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    rabbitmq: RabbitMQConfig
    postgres: PostgresConfig
    gemini: GeminiConfig
    publish_events: bool = False


def event_queue_config(namespace: str) -> QueueConfig:
    """Queue receiving successful transcriptions."""
    return QueueConfig(
        name=f"{namespace}_embedder_transcriptions",
        binding_keys=(Subjects(namespace).event(TRANSCRIPTION_SUCCEEDED),),
        dlq_name=f"dlq_{namespace}_embedder",
        dlq_routing_key=f"{namespace}.dead.embedder",
    )


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    namespace = os.getenv("SPEAKR_NAMESPACE", "speakr")
    return AppConfig(
        rabbitmq=load_rabbitmq_config(event_queue_config(namespace)),
        postgres=load_postgres_config(),
        gemini=load_gemini_config(),
        publish_events=env_bool("EMBEDDER_PUBLISH_EVENTS"),
    )
