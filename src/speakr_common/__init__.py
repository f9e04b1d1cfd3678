from speakr_common.config import (
    GeminiConfig,
    MinioConfig,
    PostgresConfig,
    QueueConfig,
    RabbitMQConfig,
)
from speakr_common.context import OperationContext, new_correlation_id
from speakr_common.exceptions import (
    ErrorCategory,
    EventPublishError,
    StorageDownloadError,
    StorageUploadError,
)
from speakr_common.logging import setup_logging

__all__ = [
    "setup_logging",
    "OperationContext",
    "new_correlation_id",
    "ErrorCategory",
    "StorageDownloadError",
    "StorageUploadError",
    "EventPublishError",
    "GeminiConfig",
    "MinioConfig",
    "PostgresConfig",
    "QueueConfig",
    "RabbitMQConfig",
]
