"""Abstract interface for audio capture backends."""

from abc import ABC, abstractmethod

from speakr_common.context import OperationContext


class AudioRecorder(ABC):
    """Controls capture processes, one per recording id."""

    @abstractmethod
    def start(self, ctx: OperationContext, recording_id: str, output_format: str) -> None:
        """
        Starts capturing audio for a recording.

        Args:
            ctx: Context of the calling operation.
            recording_id: Id of the new recording.
            output_format: Container/codec of the captured file, e.g. "wav".

        Raises:
            RecorderError: If the capture could not be started.
        """

    @abstractmethod
    def stop(self, ctx: OperationContext, recording_id: str) -> bytes:
        """
        Stops a capture gracefully and returns the finalized audio.

        Raises:
            RecorderError: If the capture is unknown or produced no audio.
        """

    @abstractmethod
    def cancel(self, ctx: OperationContext, recording_id: str) -> None:
        """
        Kills a capture and discards its partial file.

        Raises:
            RecorderError: If the capture is unknown.
        """
