"""MinIO implementation of the ObjectStore interface."""

import io

from minio import Minio
from minio.error import S3Error

from speakr_common import StorageDownloadError, StorageUploadError, setup_logging
from speakr_common.context import OperationContext
from speakr_common.exceptions import ErrorCategory

from speakr_transcriber.infrastructure.interfaces import ObjectStore

logger = setup_logging()

OBJECT_PREFIX = "recordings"

_FORMAT_ALIASES = {"mpeg": "mp3", "x-wav": "wav", "wave": "wav", "vnd.wave": "wav"}


def object_name_for(recording_id: str) -> str:
    return f"{OBJECT_PREFIX}/{recording_id}"


def format_from_content_type(content_type: str | None, default: str = "wav") -> str:
    """Derives an audio format from a Content-Type such as "audio/mp3"."""
    if not content_type or "/" not in content_type:
        return default
    subtype = content_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
    if not subtype or subtype == "octet-stream":
        return default
    return _FORMAT_ALIASES.get(subtype, subtype)


class MinioObjectStore(ObjectStore):
    """Handles recording storage using MinIO."""

    def __init__(self, client: Minio, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name

    def store_audio(
        self,
        ctx: OperationContext,
        recording_id: str,
        audio_data: bytes,
        audio_format: str,
    ) -> str:
        object_name = object_name_for(recording_id)
        try:
            self._client.put_object(
                bucket_name=self._bucket_name,
                object_name=object_name,
                data=io.BytesIO(audio_data),
                length=len(audio_data),
                content_type=f"audio/{audio_format}",
            )
        except Exception as e:
            logger.exception(
                "MinIO upload failed",
                extra=ctx.log_extra(bucket_name=self._bucket_name, object_name=object_name),
            )
            raise StorageUploadError(object_name, e) from e

        location = f"s3://{self._bucket_name}/{object_name}"
        logger.info(
            "Recording uploaded to MinIO",
            extra=ctx.log_extra(location=location, size_bytes=len(audio_data)),
        )
        return location

    def retrieve_audio(self, ctx: OperationContext, recording_id: str) -> tuple[bytes, str]:
        object_name = object_name_for(recording_id)
        response = None
        try:
            response = self._client.get_object(self._bucket_name, object_name)
            data = response.data
            content_type = response.headers.get("Content-Type")
        except S3Error as e:
            logger.exception(
                "MinIO download failed",
                extra=ctx.log_extra(bucket_name=self._bucket_name, object_name=object_name),
            )
            category = (
                ErrorCategory.NOT_FOUND
                if e.code in ("NoSuchKey", "NoSuchBucket")
                else ErrorCategory.TRANSIENT
            )
            raise StorageDownloadError(object_name, e, category) from e
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra=ctx.log_extra(bucket_name=self._bucket_name, object_name=object_name),
            )
            raise StorageDownloadError(object_name, e) from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

        audio_format = format_from_content_type(content_type)
        logger.info(
            "Recording downloaded from MinIO",
            extra=ctx.log_extra(object_name=object_name, audio_format=audio_format),
        )
        return data, audio_format

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(self._bucket_name):
            self._client.make_bucket(self._bucket_name)
            logger.info("Bucket created", extra={"bucket_name": self._bucket_name})
        else:
            logger.info("Bucket already exists", extra={"bucket_name": self._bucket_name})
