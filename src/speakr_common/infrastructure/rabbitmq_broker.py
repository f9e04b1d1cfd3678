"""RabbitMQ message broker implementation."""

import functools

from pika.adapters.blocking_connection import BlockingConnection

from speakr_common.config import QueueConfig, RabbitMQConfig
from speakr_common.infrastructure.interfaces import MessageBroker, MessageCallback
from speakr_common.logging import setup_logging

logger = setup_logging()


class RabbitMQBroker(MessageBroker):
    """
    Consumes a service queue bound to the namespace topic exchange.

    pika connections are not thread-safe, so acknowledgements coming from
    worker threads are scheduled onto the connection thread.
    """

    def __init__(self, connection: BlockingConnection, config: RabbitMQConfig):
        if config.queue_config is None:
            raise ValueError("RabbitMQBroker requires a queue configuration")
        self._connection = connection
        self._channel = connection.channel()
        self._config = config
        self._queue_config: QueueConfig = config.queue_config

    def acknowledge(self, delivery_tag: int) -> None:
        """Acknowledges successful processing of a message."""
        self._connection.add_callback_threadsafe(
            functools.partial(self._channel.basic_ack, delivery_tag=delivery_tag)
        )

    def reject(self, delivery_tag: int, requeue: bool) -> None:
        """Rejects a message, redelivering it or sending it to the dead-letter queue."""
        self._connection.add_callback_threadsafe(
            functools.partial(
                self._channel.basic_nack, delivery_tag=delivery_tag, requeue=requeue
            )
        )

    def consume(self, callback: MessageCallback) -> None:
        """
        Starts consuming messages from the configured queue.

        Blocks until `stop` is called. Prefetch is bounded by the worker pool
        size so unprocessed messages stay on the broker.

        Args:
            callback: Called with (routing_key, body, delivery_tag, headers).
        """

        def on_message(ch, method, properties, body):
            headers = properties.headers if properties else None
            callback(method.routing_key, body, method.delivery_tag, headers)

        self._channel.basic_qos(prefetch_count=self._config.max_workers)
        self._channel.basic_consume(
            queue=self._queue_config.name,
            on_message_callback=on_message,
        )
        logger.info(
            "Started consuming",
            extra={"queue": self._queue_config.name},
        )
        self._channel.start_consuming()

    def stop(self) -> None:
        """Stops the consume loop from any thread."""
        self._connection.add_callback_threadsafe(self._channel.stop_consuming)

    def setup(self) -> None:
        """Declares the namespace exchange, this service's queue and its dead-letter route."""
        qc = self._queue_config
        self._declare_dead_letter_route(qc)
        self._channel.exchange_declare(
            exchange=self._config.exchange_name, exchange_type="topic", durable=True
        )
        self._channel.queue_declare(
            queue=qc.name,
            durable=True,
            arguments={
                "x-queue-type": qc.queue_type,
                # Redeliveries beyond this count go to the dead-letter queue.
                "x-delivery-limit": qc.max_delivery_count,
                "x-dead-letter-exchange": qc.dlq_exchange_name,
                "x-dead-letter-routing-key": qc.dlq_routing_key,
            },
        )
        for binding_key in qc.binding_keys:
            self._channel.queue_bind(
                queue=qc.name, exchange=self._config.exchange_name, routing_key=binding_key
            )

        logger.info(
            "Service queue declared",
            extra={
                "queue": qc.name,
                "exchange": self._config.exchange_name,
                "binding_keys": list(qc.binding_keys),
                "dead_letter_queue": qc.dlq_name,
            },
        )

    def _declare_dead_letter_route(self, qc: QueueConfig) -> None:
        self._channel.exchange_declare(
            exchange=qc.dlq_exchange_name, exchange_type="direct", durable=True
        )
        self._channel.queue_declare(queue=qc.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=qc.dlq_name, exchange=qc.dlq_exchange_name, routing_key=qc.dlq_routing_key
        )
