"""RabbitMQ implementation of the MessagePublisher interface."""

import json
import threading
from typing import Any

import pika
from pika.adapters.blocking_connection import BlockingChannel

from speakr_common.exceptions import EventPublishError
from speakr_common.infrastructure.interfaces import MessagePublisher
from speakr_common.logging import setup_logging

logger = setup_logging()


class RabbitMQPublisher(MessagePublisher):
    """Publishes persistent JSON messages to a RabbitMQ topic exchange."""

    def __init__(self, channel: BlockingChannel, exchange_name: str):
        self._channel = channel
        self._exchange_name = exchange_name
        # One channel is shared by every worker thread.
        self._lock = threading.Lock()

    def declare_exchange(self) -> None:
        """Declares the topic exchange so publishing works before any consumer exists."""
        with self._lock:
            self._channel.exchange_declare(
                exchange=self._exchange_name,
                exchange_type="topic",
                durable=True,
            )

    def publish(
        self,
        routing_key: str,
        payload: dict,
        headers: dict[str, Any] | None = None,
    ) -> None:
        properties = pika.BasicProperties(
            content_type="application/json",
            delivery_mode=2,
            headers=dict(headers or {}),
        )
        try:
            with self._lock:
                self._channel.basic_publish(
                    exchange=self._exchange_name,
                    routing_key=routing_key,
                    body=json.dumps(payload),
                    properties=properties,
                )
            logger.info(
                "Message published to RabbitMQ",
                extra={
                    "exchange": self._exchange_name,
                    "routing_key": routing_key,
                    "correlation_id": (headers or {}).get("correlation_id"),
                },
            )
        except Exception as e:
            logger.exception(
                "RabbitMQ publish failed",
                extra={"routing_key": routing_key},
            )
            raise EventPublishError(routing_key, e) from e
