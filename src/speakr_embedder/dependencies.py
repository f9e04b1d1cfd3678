"""Dependency injection configuration for the embedder service."""

from google import genai
from google.genai import types

from speakr_common import setup_logging
from speakr_common.contract import Subjects
from speakr_common.database import get_engine, make_session_factory
from speakr_common.events import EventEmitter
from speakr_common.infrastructure import (
    GeminiEmbeddingGenerator,
    PgVectorStore,
    RabbitMQBroker,
    RabbitMQPublisher,
)
from speakr_common.infrastructure.pgvector_store import init_schema
from speakr_common.rabbitmq import get_rabbit_connection
from speakr_common.worker import Worker

from speakr_embedder.config import load_config
from speakr_embedder.domain import EmbeddingOrchestrator
from speakr_embedder.handlers import TranscriptionEventHandler

logger = setup_logging()

_config = load_config()

# PostgreSQL + pgvector
_db_engine = get_engine(_config.postgres)
init_schema(_db_engine)
_store = PgVectorStore(make_session_factory(_db_engine), _config.gemini.dimensions)
logger.info("Database initialized", extra={"host": _config.postgres.host})

# Gemini embeddings
_gemini_client = genai.Client(
    api_key=_config.gemini.api_key,
    http_options=types.HttpOptions(timeout=int(_config.gemini.timeout_seconds * 1000)),
)
_generator = GeminiEmbeddingGenerator(_gemini_client, _config.gemini)

# RabbitMQ broker
_consumer_connection = get_rabbit_connection(_config.rabbitmq)
_broker = RabbitMQBroker(_consumer_connection, _config.rabbitmq)
_broker.setup()

_emitter = None
if _config.publish_events:
    _publisher_connection = get_rabbit_connection(_config.rabbitmq, heartbeat=0)
    _publisher = RabbitMQPublisher(
        _publisher_connection.channel(), _config.rabbitmq.exchange_name
    )
    _publisher.declare_exchange()
    _emitter = EventEmitter(_publisher, Subjects(_config.rabbitmq.namespace))

# Service composition
_orchestrator = EmbeddingOrchestrator(_generator, _store, _emitter)
_handler = TranscriptionEventHandler(_orchestrator)


def get_worker() -> Worker:
    """Returns the configured worker instance."""
    return Worker(_broker, _handler.handlers(), _config.rabbitmq)
