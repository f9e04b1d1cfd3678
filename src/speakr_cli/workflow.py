"""Publishing commands and waiting for the events they cause."""

import json
import time
from typing import Any

from pika.adapters.blocking_connection import BlockingConnection

from speakr_common.context import CORRELATION_ID_HEADER, OperationContext
from speakr_common.contract import EVENTS, Message, Subjects
from speakr_common.events import EventEmitter
from speakr_common.infrastructure import RabbitMQPublisher
from speakr_common.logging import setup_logging

logger = setup_logging()

# Granularity at which the wait loop re-checks its deadline.
_POLL_SECONDS = 0.5


class ReplyTimeoutError(Exception):
    """Raised when no matching event arrives before the deadline."""

    def __init__(self, names: set[str], timeout: float):
        self.names = names
        self.timeout = timeout
        super().__init__(
            f"No {' or '.join(sorted(names))} event within {timeout:.0f}s"
        )


class CommandClient:
    """
    Sends commands and receives the events correlated with them.

    Events are read from an exclusive, auto-deleted queue bound to every event
    subject of the namespace, so the queue exists before the command is sent
    and no reply can be missed.
    """

    def __init__(self, connection: BlockingConnection, subjects: Subjects):
        self._connection = connection
        self._subjects = subjects
        self._channel = connection.channel()

        publisher = RabbitMQPublisher(self._channel, subjects.namespace)
        publisher.declare_exchange()
        self._emitter = EventEmitter(publisher, subjects)

        result = self._channel.queue_declare(queue="", exclusive=True, auto_delete=True)
        self._queue = result.method.queue
        for name in EVENTS:
            self._channel.queue_bind(
                queue=self._queue,
                exchange=subjects.namespace,
                routing_key=subjects.event(name),
            )
        self._messages = self._channel.consume(
            self._queue, auto_ack=True, inactivity_timeout=_POLL_SECONDS
        )
        # Correlated events received while waiting for something else.
        self._stash: list[tuple[str, str, dict[str, Any]]] = []

    def send(self, ctx: OperationContext, name: str, command: Message) -> None:
        self._emitter.send_command(ctx, name, command)

    def wait_for(
        self, ctx: OperationContext, names: set[str], timeout: float
    ) -> tuple[str, dict[str, Any]]:
        """
        Blocks until an event named in `names` with the context's correlation id arrives.

        Returns:
            The event name and its payload.

        Raises:
            ReplyTimeoutError: If nothing matched within `timeout` seconds.
        """
        for index, (correlation_id, name, payload) in enumerate(self._stash):
            if correlation_id == ctx.correlation_id and name in names:
                del self._stash[index]
                return name, payload

        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            method, properties, body = next(self._messages)
            if method is None:
                continue

            headers = (properties.headers if properties else None) or {}
            correlation_id = headers.get(CORRELATION_ID_HEADER)
            if isinstance(correlation_id, bytes):
                correlation_id = correlation_id.decode("utf-8")
            if correlation_id != ctx.correlation_id:
                continue

            try:
                _, name = self._subjects.parse(method.routing_key)
                payload = json.loads(body)
            except ValueError:
                logger.warning(
                    "Ignoring malformed event",
                    extra=ctx.log_extra(routing_key=method.routing_key),
                )
                continue

            if name in names:
                return name, payload
            self._stash.append((correlation_id, name, payload))

        raise ReplyTimeoutError(names, timeout)

    def close(self) -> None:
        if self._connection.is_open:
            self._channel.cancel()
            self._connection.close()
