"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from speakr_common.config import (
    MinioConfig,
    QueueConfig,
    RabbitMQConfig,
    load_rabbitmq_config,
)
from speakr_common.contract import COMMANDS, Subjects


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str
    speaker_labels: bool = False
    language_code: str | None = None
    max_retries: int = 3
    retry_base_delay: float = 2.0


class RecorderConfig(BaseModel, frozen=True):
    """ffmpeg capture configuration."""

    ffmpeg_path: str = "ffmpeg"
    input_format: str = "pulse"
    input_device: str = "default"
    sample_rate: int = 44100
    channels: int = 1
    temp_dir: str = "/tmp/speakr"
    max_duration_seconds: int = 30 * 60
    startup_grace_seconds: float = 0.5
    stop_timeout_seconds: float = 10.0
    # Sessions older than this are cancelled as abandoned; must exceed max_duration_seconds.
    session_timeout_seconds: int = 60 * 60


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    rabbitmq: RabbitMQConfig
    assemblyai: AssemblyAIConfig
    recorder: RecorderConfig


def command_queue_config(namespace: str) -> QueueConfig:
    """Queue receiving every command this service handles."""
    subjects = Subjects(namespace)
    return QueueConfig(
        name=f"{namespace}_transcriber_commands",
        binding_keys=tuple(subjects.command(name) for name in COMMANDS),
        dlq_name=f"dlq_{namespace}_transcriber",
        dlq_routing_key=f"{namespace}.dead.transcriber",
    )


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    namespace = os.getenv("SPEAKR_NAMESPACE", "speakr")
    return AppConfig(
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            bucket_name=os.getenv("MINIO_BUCKET", "speakr-audio"),
        ),
        rabbitmq=load_rabbitmq_config(command_queue_config(namespace)),
        assemblyai=AssemblyAIConfig(
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            language_code=os.getenv("ASSEMBLYAI_LANGUAGE_CODE") or None,
            max_retries=int(os.getenv("ASSEMBLYAI_MAX_RETRIES", "3")),
        ),
        recorder=RecorderConfig(
            ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg"),
            input_format=os.getenv("RECORDER_INPUT_FORMAT", "pulse"),
            input_device=os.getenv("RECORDER_INPUT_DEVICE", "default"),
            sample_rate=int(os.getenv("RECORDER_SAMPLE_RATE", "44100")),
            channels=int(os.getenv("RECORDER_CHANNELS", "1")),
            temp_dir=os.getenv("RECORDER_TEMP_DIR", "/tmp/speakr"),
            max_duration_seconds=int(os.getenv("RECORDER_MAX_DURATION_SECONDS", "1800")),
            session_timeout_seconds=int(os.getenv("RECORDER_SESSION_TIMEOUT_SECONDS", "3600")),
        ),
    )
