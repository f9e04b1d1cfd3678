"""Abstract interfaces for message broker operations."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

MessageCallback = Callable[[str, bytes, int, dict[str, Any] | None], None]


class MessagePublisher(ABC):
    """Abstract base class for publishing messages to a broker."""

    @abstractmethod
    def publish(
        self,
        routing_key: str,
        payload: dict,
        headers: dict[str, Any] | None = None,
    ) -> None:
        """
        Publishes a message to the broker.

        Args:
            routing_key: The subject of the message.
            payload: The message data as a JSON-serialisable dictionary.
            headers: Transport headers, e.g. the correlation id.

        Raises:
            EventPublishError: If publishing fails.
        """


class MessageBroker(ABC):
    """Abstract base class for consuming messages from a broker."""

    @abstractmethod
    def acknowledge(self, delivery_tag: int) -> None:
        """
        Acknowledges successful processing of a message.

        Safe to call from any thread.

        Args:
            delivery_tag: The message delivery tag.
        """

    @abstractmethod
    def reject(self, delivery_tag: int, requeue: bool) -> None:
        """
        Rejects a message.

        Safe to call from any thread.

        Args:
            delivery_tag: The message delivery tag.
            requeue: Redeliver the message if True, dead-letter it otherwise.
        """

    @abstractmethod
    def consume(self, callback: MessageCallback) -> None:
        """
        Consumes messages from the configured queue until stopped.

        Args:
            callback: Called with (routing_key, body, delivery_tag, headers).
        """

    @abstractmethod
    def stop(self) -> None:
        """Stops consuming. Safe to call from any thread."""

    @abstractmethod
    def setup(self) -> None:
        """Sets up the required infrastructure (exchanges, queues, bindings)."""
