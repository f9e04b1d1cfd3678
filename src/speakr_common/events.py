"""Publishing typed commands and events under the configured namespace."""

from speakr_common.context import OperationContext
from speakr_common.contract import Message, Subjects
from speakr_common.infrastructure.interfaces import MessagePublisher
from speakr_common.logging import setup_logging

logger = setup_logging()


class EventEmitter:
    """Serialises contract messages and publishes them with correlation headers."""

    def __init__(self, publisher: MessagePublisher, subjects: Subjects):
        self._publisher = publisher
        self._subjects = subjects

    @property
    def subjects(self) -> Subjects:
        return self._subjects

    def emit(self, ctx: OperationContext, name: str, event: Message) -> None:
        """
        Publishes an event.

        Raises:
            EventPublishError: If the broker rejects the message.
        """
        subject = self._subjects.event(name)
        self._publisher.publish(
            subject, event.model_dump(mode="json"), headers=ctx.headers()
        )
        logger.info("Event emitted", extra=ctx.log_extra(subject=subject))

    def send_command(self, ctx: OperationContext, name: str, command: Message) -> None:
        """
        Publishes a command. The sender learns the outcome only from events.

        Raises:
            EventPublishError: If the broker rejects the message.
        """
        subject = self._subjects.command(name)
        self._publisher.publish(
            subject, command.model_dump(mode="json", exclude_none=True),
            headers=ctx.headers(),
        )
        logger.info("Command sent", extra=ctx.log_extra(subject=subject))
