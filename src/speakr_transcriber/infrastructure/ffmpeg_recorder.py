"""ffmpeg implementation of the AudioRecorder interface."""

import os
import shutil
import subprocess
import threading
from collections.abc import Callable

from speakr_common.context import OperationContext
from speakr_common.exceptions import ErrorCategory, RecorderError
from speakr_common.logging import setup_logging

from speakr_transcriber.config import RecorderConfig
from speakr_transcriber.infrastructure.interfaces import AudioRecorder

logger = setup_logging()

_CODEC_ARGS = {
    "wav": ["-acodec", "pcm_s16le"],
    "mp3": ["-acodec", "mp3", "-ab", "128k"],
}


class _Capture:
    def __init__(self, process: subprocess.Popen, file_path: str):
        self.process = process
        self.file_path = file_path


class FFmpegRecorder(AudioRecorder):
    """
    Captures audio with one ffmpeg process per recording.

    ffmpeg writes to `<temp_dir>/<recording_id>.<format>`; the file is read
    back on stop and removed afterwards. Every capture is hard-capped with
    `-t` so a forgotten recording cannot run forever.
    """

    def __init__(
        self,
        config: RecorderConfig,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self._config = config
        self._popen = popen
        self._captures: dict[str, _Capture] = {}
        self._lock = threading.Lock()

    def build_args(self, output_path: str, output_format: str) -> list[str]:
        """Returns the ffmpeg command line for one capture."""
        return [
            self._config.ffmpeg_path,
            "-hide_banner",
            "-nostats",
            "-loglevel", "error",
            "-f", self._config.input_format,
            "-i", self._config.input_device,
            "-ar", str(self._config.sample_rate),
            "-ac", str(self._config.channels),
            "-t", str(self._config.max_duration_seconds),
            *_CODEC_ARGS.get(output_format, _CODEC_ARGS["wav"]),
            "-y",
            output_path,
        ]

    def start(self, ctx: OperationContext, recording_id: str, output_format: str) -> None:
        if shutil.which(self._config.ffmpeg_path) is None:
            raise RecorderError(
                recording_id,
                f"'{self._config.ffmpeg_path}' not found on PATH",
                category=ErrorCategory.INTERNAL,
            )

        os.makedirs(self._config.temp_dir, exist_ok=True)
        file_path = os.path.join(self._config.temp_dir, f"{recording_id}.{output_format}")
        args = self.build_args(file_path, output_format)

        with self._lock:
            if recording_id in self._captures:
                raise RecorderError(recording_id, "capture already running")
            try:
                process = self._popen(
                    args,
                    stdin=subprocess.PIPE,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                )
            except OSError as e:
                raise RecorderError(
                    recording_id, f"failed to launch ffmpeg: {e}", e, ErrorCategory.INTERNAL
                ) from e
            self._captures[recording_id] = _Capture(process, file_path)

        # A missing input device makes ffmpeg exit right away.
        try:
            process.wait(timeout=self._config.startup_grace_seconds)
        except subprocess.TimeoutExpired:
            logger.info(
                "ffmpeg capture running",
                extra=ctx.log_extra(file_path=file_path, pid=process.pid),
            )
            return

        with self._lock:
            self._captures.pop(recording_id, None)
        stderr = _read_stderr(process)
        _remove(file_path)
        raise RecorderError(
            recording_id, f"ffmpeg exited with code {process.returncode}: {stderr}"
        )

    def stop(self, ctx: OperationContext, recording_id: str) -> bytes:
        capture = self._take(recording_id)
        process = capture.process

        if process.poll() is None:
            try:
                # "q" on stdin makes ffmpeg finalize the container and exit.
                _, stderr = process.communicate(
                    input=b"q", timeout=self._config.stop_timeout_seconds
                )
            except subprocess.TimeoutExpired:
                logger.warning(
                    "ffmpeg did not exit on request, terminating",
                    extra=ctx.log_extra(pid=process.pid),
                )
                process.terminate()
                _, stderr = process.communicate()
        else:
            stderr = _read_stderr(process)

        if process.returncode not in (0, 255):
            logger.warning(
                "ffmpeg ended with an error",
                extra=ctx.log_extra(returncode=process.returncode, stderr=_decode(stderr)),
            )

        try:
            with open(capture.file_path, "rb") as f:
                audio_data = f.read()
        except FileNotFoundError as e:
            raise RecorderError(recording_id, "recording file not found", e) from e
        finally:
            _remove(capture.file_path)

        if not audio_data:
            raise RecorderError(recording_id, "recording file is empty")

        logger.info(
            "ffmpeg capture stopped",
            extra=ctx.log_extra(size_bytes=len(audio_data)),
        )
        return audio_data

    def cancel(self, ctx: OperationContext, recording_id: str) -> None:
        capture = self._take(recording_id)
        _kill(capture.process)
        _remove(capture.file_path)
        logger.info("ffmpeg capture cancelled", extra=ctx.log_extra())

    def close(self) -> None:
        """Kills every running capture; called on service shutdown."""
        with self._lock:
            captures = list(self._captures.items())
            self._captures.clear()
        for recording_id, capture in captures:
            _kill(capture.process)
            _remove(capture.file_path)
            logger.warning(
                "Capture terminated on shutdown", extra={"recording_id": recording_id}
            )

    def _take(self, recording_id: str) -> _Capture:
        with self._lock:
            capture = self._captures.pop(recording_id, None)
        if capture is None:
            raise RecorderError(
                recording_id, "no running capture", category=ErrorCategory.NOT_FOUND
            )
        return capture


def _kill(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.kill()
    process.communicate()


def _read_stderr(process: subprocess.Popen) -> str:
    if process.stderr is None:
        return ""
    return _decode(process.stderr.read())


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace").strip()


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
