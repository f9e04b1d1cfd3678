"""FastAPI dependency injection configuration."""

from functools import lru_cache

from fastapi import Request
from google import genai
from google.genai import types

from speakr_common.context import OperationContext
from speakr_common.database import get_engine, make_session_factory
from speakr_common.infrastructure import GeminiEmbeddingGenerator, PgVectorStore

from speakr_query.config import AppConfig, load_config
from speakr_query.domain import QueryOrchestrator

CORRELATION_ID_HTTP_HEADER = "X-Correlation-ID"


@lru_cache
def get_config() -> AppConfig:
    """Returns the application configuration, loaded once."""
    return load_config()


@lru_cache
def get_query_orchestrator() -> QueryOrchestrator:
    """Builds the orchestrator and its adapters on first use."""
    config = get_config()

    engine = get_engine(config.postgres)
    store = PgVectorStore(make_session_factory(engine), config.gemini.dimensions)

    client = genai.Client(
        api_key=config.gemini.api_key,
        http_options=types.HttpOptions(timeout=int(config.gemini.timeout_seconds * 1000)),
    )
    generator = GeminiEmbeddingGenerator(client, config.gemini, task_type="RETRIEVAL_QUERY")

    return QueryOrchestrator(
        generator,
        store,
        default_limit=config.api.default_limit,
        max_limit=config.api.max_limit,
    )


def get_operation_context(request: Request) -> OperationContext:
    """Context for the current request, carrying the correlation id set by the middleware."""
    return OperationContext(correlation_id=request.state.correlation_id)
