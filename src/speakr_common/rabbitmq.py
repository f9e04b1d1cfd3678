import logging

import pika
from pika.adapters.blocking_connection import BlockingConnection

from speakr_common.config import RabbitMQConfig

logger = logging.getLogger(__name__)


def get_rabbit_connection(config: RabbitMQConfig, heartbeat: int | None = None) -> BlockingConnection:
    """
    Opens a blocking connection to RabbitMQ.

    Consumers keep the default heartbeat because their I/O loop runs
    continuously; publish-only connections pass heartbeat=0 since nothing
    services them between publishes.

    Args:
        config: Broker connection settings.
        heartbeat: Heartbeat interval override in seconds.

    Returns:
        BlockingConnection: The open connection.
    """
    credentials = pika.PlainCredentials(config.user, config.password)
    parameters = pika.ConnectionParameters(
        host=config.host,
        port=config.port,
        credentials=credentials,
        heartbeat=heartbeat,
    )

    try:
        return pika.BlockingConnection(parameters)
    except Exception:
        logger.exception(
            "Failed to connect to RabbitMQ",
            extra={"host": config.host, "username": config.user},
        )
        raise
