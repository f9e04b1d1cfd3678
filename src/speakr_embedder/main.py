"""
Embedder Service.

Entry point for the transcript embedding service.
"""

import signal

from ddtrace import patch_all

patch_all()

from speakr_embedder.dependencies import get_worker  # noqa: E402


def main():
    """Starts the worker and stops it on SIGINT/SIGTERM."""
    worker = get_worker()

    def shutdown(signum, frame):
        worker.stop()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)
    worker.start()


if __name__ == "__main__":
    main()
