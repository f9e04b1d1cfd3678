"""Bounded retry with exponential backoff for calls to external APIs."""

from collections.abc import Callable
from typing import TypeVar

from speakr_common.context import OperationContext
from speakr_common.exceptions import (
    ErrorCategory,
    OperationCancelledError,
    category_of,
)
from speakr_common.logging import setup_logging

logger = setup_logging()

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """Only transient failures are retried; auth and validation never are."""
    return category_of(error) == ErrorCategory.TRANSIENT


def call_with_retry(
    operation: Callable[[], T],
    ctx: OperationContext,
    *,
    name: str,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
) -> T:
    """
    Runs `operation`, retrying transient failures with exponential backoff.

    The wait between attempts is `base_delay * 2**(attempt - 1)`, capped at
    `max_delay`. Waiting happens on the context's cancel event so that a
    shutdown interrupts the backoff instead of sleeping through it.

    Args:
        operation: Zero-argument callable performing one attempt.
        ctx: Context of the calling operation.
        name: Operation name used in log lines and errors.
        max_attempts: Total number of attempts, including the first.
        base_delay: Delay in seconds before the second attempt.
        max_delay: Upper bound for a single delay.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        OperationCancelledError: If the context is cancelled while waiting.
        Exception: The last error, once attempts are exhausted or the error
            is not retryable.
    """
    attempt = 1
    while True:
        if ctx.cancelled:
            raise OperationCancelledError(name)
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e):
                logger.error(
                    "Non-retryable error",
                    extra=ctx.log_extra(
                        call=name, attempt=attempt, error=str(e),
                        category=category_of(e).value,
                    ),
                )
                raise
            if attempt >= max_attempts:
                logger.error(
                    "Retry attempts exhausted",
                    extra=ctx.log_extra(call=name, attempts=attempt, error=str(e)),
                )
                raise

            delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
            logger.warning(
                "Attempt failed, retrying",
                extra=ctx.log_extra(
                    call=name, attempt=attempt, max_attempts=max_attempts,
                    delay_seconds=delay, error=str(e),
                ),
            )
            if ctx.cancel_event.wait(delay):
                raise OperationCancelledError(name) from e
            attempt += 1
