"""Dependency injection configuration for the transcriber service."""

import assemblyai as aai
from minio import Minio

from speakr_common import setup_logging
from speakr_common.contract import Subjects
from speakr_common.events import EventEmitter
from speakr_common.infrastructure import RabbitMQBroker, RabbitMQPublisher
from speakr_common.rabbitmq import get_rabbit_connection
from speakr_common.worker import Worker

from speakr_transcriber.config import load_config
from speakr_transcriber.domain import (
    RecordingOrchestrator,
    SessionRegistry,
    TranscriptionOrchestrator,
)
from speakr_transcriber.handlers import CommandHandler
from speakr_transcriber.infrastructure import (
    AssemblyAITranscriber,
    FFmpegRecorder,
    MinioObjectStore,
)

logger = setup_logging()

_config = load_config()

# MinIO setup
_minio_client = Minio(
    endpoint=_config.minio.endpoint,
    access_key=_config.minio.user,
    secret_key=_config.minio.password,
    secure=_config.minio.secure,
)
_object_store = MinioObjectStore(_minio_client, _config.minio.bucket_name)
_object_store.ensure_bucket_exists()

# RabbitMQ setup: one connection consumes, a second one publishes
_consumer_connection = get_rabbit_connection(_config.rabbitmq)
_broker = RabbitMQBroker(_consumer_connection, _config.rabbitmq)
_broker.setup()

_publisher_connection = get_rabbit_connection(_config.rabbitmq, heartbeat=0)
_publisher = RabbitMQPublisher(_publisher_connection.channel(), _config.rabbitmq.exchange_name)
_publisher.declare_exchange()
_emitter = EventEmitter(_publisher, Subjects(_config.rabbitmq.namespace))

# AssemblyAI setup
aai.settings.api_key = _config.assemblyai.api_key
_aai_config = aai.TranscriptionConfig(
    speaker_labels=_config.assemblyai.speaker_labels,
    language_code=_config.assemblyai.language_code,
)
_aai_transcriber = aai.Transcriber(config=_aai_config)
_transcription_service = AssemblyAITranscriber(_aai_transcriber, _config.assemblyai)

_recorder = FFmpegRecorder(_config.recorder)

_transcriptions = TranscriptionOrchestrator(_object_store, _transcription_service, _emitter)
_recordings = RecordingOrchestrator(
    _recorder, _object_store, _emitter, _transcriptions,
    SessionRegistry(max_age_seconds=_config.recorder.session_timeout_seconds),
)

logger.info(
    "Transcriber dependencies ready",
    extra={
        "namespace": _config.rabbitmq.namespace,
        "bucket_name": _config.minio.bucket_name,
        "max_workers": _config.rabbitmq.max_workers,
    },
)


def get_recorder() -> FFmpegRecorder:
    """Returns the configured recorder."""
    return _recorder


def get_recording_orchestrator() -> RecordingOrchestrator:
    """Returns the configured recording orchestrator."""
    return _recordings


def get_transcription_orchestrator() -> TranscriptionOrchestrator:
    """Returns the configured transcription orchestrator."""
    return _transcriptions


def get_worker() -> Worker:
    """Returns the configured worker."""
    handler = CommandHandler(_recordings, _transcriptions)
    return Worker(_broker, handler.handlers(), _config.rabbitmq)
