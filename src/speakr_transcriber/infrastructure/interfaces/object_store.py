"""Abstract interface for audio object storage."""

from abc import ABC, abstractmethod

from speakr_common.context import OperationContext


class ObjectStore(ABC):
    """Stores finalized recordings keyed by recording id."""

    @abstractmethod
    def store_audio(
        self,
        ctx: OperationContext,
        recording_id: str,
        audio_data: bytes,
        audio_format: str,
    ) -> str:
        """
        Uploads a recording.

        Args:
            ctx: Context of the calling operation.
            recording_id: Id the object is keyed by.
            audio_data: Finalized audio bytes.
            audio_format: Format of the audio, e.g. "wav".

        Returns:
            The location of the stored object, e.g. "s3://bucket/recordings/<id>".

        Raises:
            StorageUploadError: If the upload fails.
        """

    @abstractmethod
    def retrieve_audio(self, ctx: OperationContext, recording_id: str) -> tuple[bytes, str]:
        """
        Downloads a recording.

        Returns:
            The audio bytes and their format.

        Raises:
            StorageDownloadError: If the object is missing or the download fails.
        """
