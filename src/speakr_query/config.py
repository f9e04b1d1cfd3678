"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from speakr_common.config import (
    GeminiConfig,
    PostgresConfig,
    load_gemini_config,
    load_postgres_config,
)


class QueryApiConfig(BaseModel, frozen=True):
    """HTTP server and search limits."""

    host: str = "0.0.0.0"
    port: int = 8080
    default_limit: int = 10
    max_limit: int = 100


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    api: QueryApiConfig
    postgres: PostgresConfig
    gemini: GeminiConfig


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        api=QueryApiConfig(
            host=os.getenv("QUERY_API_HOST", "0.0.0.0"),
            port=int(os.getenv("QUERY_API_PORT", "8080")),
            default_limit=int(os.getenv("QUERY_DEFAULT_LIMIT", "10")),
            max_limit=int(os.getenv("QUERY_MAX_LIMIT", "100")),
        ),
        postgres=load_postgres_config(),
        gemini=load_gemini_config(),
    )
