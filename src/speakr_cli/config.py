"""CLI configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from speakr_common.config import RabbitMQConfig, load_rabbitmq_config


class CliConfig(BaseModel, frozen=True):
    """Broker connection, query API location and reply timeouts."""

    rabbitmq: RabbitMQConfig
    query_api_url: str = "http://localhost:8080"
    reply_timeout_seconds: float = 30.0
    transcription_timeout_seconds: float = 600.0


def load_config() -> CliConfig:
    """Loads configuration from environment variables."""
    return CliConfig(
        rabbitmq=load_rabbitmq_config(),
        query_api_url=os.getenv("SPEAKR_QUERY_URL", "http://localhost:8080"),
        reply_timeout_seconds=float(os.getenv("SPEAKR_REPLY_TIMEOUT", "30")),
        transcription_timeout_seconds=float(os.getenv("SPEAKR_TRANSCRIPTION_TIMEOUT", "600")),
    )
