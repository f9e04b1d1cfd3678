"""
Transcriber Service.

Entry point for the capture and transcription service.
"""

import signal

from ddtrace import patch_all

patch_all()

from speakr_transcriber.dependencies import get_recorder, get_worker  # noqa: E402


def main():
    """Starts the worker and stops it on SIGINT/SIGTERM."""
    worker = get_worker()
    recorder = get_recorder()

    def shutdown(signum, frame):
        worker.stop()
        recorder.close()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    try:
        worker.start()
    finally:
        recorder.close()


if __name__ == "__main__":
    main()
