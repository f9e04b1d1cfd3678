import logging
import os
import sys

from pythonjsonlogger import jsonlogger


def setup_logging(stream=None):
    """
    Configures structured JSON logging for a Speakr process.

    Every record carries the correlation and recording ids passed through
    `extra`, plus trace_id and span_id when ddtrace log injection is active.
    The root logger and the Uvicorn loggers share a single stdout handler so
    that the HTTP API and the workers emit the same format.

    Args:
        stream: Destination of the log lines, stdout by default. The CLI
            passes stderr so logs never mix with its output.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(correlation_id)s %(recording_id)s %(trace_id)s %(span_id)s"
    )
    stream_handler = logging.StreamHandler(stream or sys.stdout)
    stream_handler.setFormatter(formatter)

    level = os.getenv("LOG_LEVEL", "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level)

        u_logger.handlers = []

        u_logger.addHandler(stream_handler)

        u_logger.propagate = False

    # pika logs every connection state change at INFO
    logging.getLogger("pika").setLevel(logging.WARNING)

    return root_logger
