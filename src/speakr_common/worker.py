"""Worker that handles queue message consumption and dispatch."""

import json
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from speakr_common.config import RabbitMQConfig
from speakr_common.context import OperationContext
from speakr_common.contract import Subjects
from speakr_common.exceptions import ErrorCategory, category_of
from speakr_common.infrastructure.interfaces import MessageBroker
from speakr_common.logging import setup_logging

logger = setup_logging()

MessageHandler = Callable[[dict[str, Any], OperationContext], None]


def should_requeue(error: BaseException) -> bool:
    """
    Decides whether a failed message goes back to the queue.

    Only transient failures whose outcome has not been published as a
    *.failed event are redelivered; everything else is dead-lettered.
    """
    return category_of(error) == ErrorCategory.TRANSIENT and not getattr(
        error, "reported", False
    )


class Worker:
    """
    Consumes messages from the queue and dispatches them to handlers.

    Each message runs on a thread pool so that different recordings are
    processed concurrently. Handlers are looked up by the logical subject
    name, e.g. "recording.start".
    """

    def __init__(
        self,
        broker: MessageBroker,
        handlers: Mapping[str, MessageHandler],
        config: RabbitMQConfig,
        shutdown_event: threading.Event | None = None,
    ):
        self._broker = broker
        self._handlers = dict(handlers)
        self._config = config
        self._subjects = Subjects(config.namespace)
        self._shutdown = shutdown_event or threading.Event()
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="speakr-worker"
        )

    @property
    def shutdown_event(self) -> threading.Event:
        return self._shutdown

    def start(self) -> None:
        """Starts consuming messages; returns once `stop` has been called."""
        logger.info(
            "Worker initialized, starting message consumption",
            extra={"subjects": sorted(self._handlers), "max_workers": self._config.max_workers},
        )
        try:
            self._broker.consume(self._on_message)
        finally:
            self._executor.shutdown(wait=True)
            logger.info("Worker stopped")

    def stop(self) -> None:
        """Signals in-flight operations to cancel and stops consuming."""
        logger.info("Worker stopping")
        self._shutdown.set()
        self._broker.stop()

    def _on_message(
        self,
        routing_key: str,
        body: bytes,
        delivery_tag: int,
        headers: dict[str, Any] | None,
    ) -> None:
        """Callback for each received message, run on the connection thread."""
        self._executor.submit(self._process, routing_key, body, delivery_tag, headers)

    def _process(
        self,
        routing_key: str,
        body: bytes,
        delivery_tag: int,
        headers: dict[str, Any] | None,
    ) -> None:
        ctx = OperationContext.from_headers(headers, cancel_event=self._shutdown)
        delivery_count = headers.get("x-delivery-count", 0) if headers else 0

        logger.info(
            "Message received",
            extra=ctx.log_extra(
                routing_key=routing_key,
                attempt=delivery_count + 1,
                max_attempts=self._config.queue_config.max_delivery_count
                if self._config.queue_config
                else None,
            ),
        )

        try:
            _, name = self._subjects.parse(routing_key)
            handler = self._handlers[name]
            payload = json.loads(body)
            if not isinstance(payload, dict):
                raise ValueError("Message body must be a JSON object")
        except (KeyError, ValueError) as e:
            logger.error(
                "Unroutable or malformed message",
                extra=ctx.log_extra(routing_key=routing_key, error=str(e)),
            )
            self._broker.reject(delivery_tag, requeue=False)
            return

        try:
            handler(payload, ctx.for_operation(name))
        except ValidationError as e:
            logger.error(
                "Invalid message format",
                extra=ctx.log_extra(routing_key=routing_key, error=str(e)),
            )
            self._broker.reject(delivery_tag, requeue=False)
            return
        except Exception as e:
            requeue = should_requeue(e)
            logger.exception(
                "Message processing failed",
                extra=ctx.log_extra(
                    routing_key=routing_key,
                    category=category_of(e).value,
                    requeue=requeue,
                ),
            )
            self._broker.reject(delivery_tag, requeue=requeue)
            return

        self._broker.acknowledge(delivery_tag)
        logger.info(
            "Message processed successfully",
            extra=ctx.log_extra(routing_key=routing_key),
        )
