"""MinIO implementation of the MediaStore interface."""

import asyncio
import os
from datetime import timedelta

from minio import Minio
from minio.error import S3Error

from lecture_pipeline.exceptions import MediaStoreError
from lecture_pipeline.logging import setup_logging

from .interfaces import MediaStore

logger = setup_logging(__name__)

_MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchObject")


class MinioMediaStore(MediaStore):
    """Resolves lecture media stored as MinIO objects to presigned URLs."""

    def __init__(self, client: Minio, bucket_name: str, url_expiry_seconds: int = 3600):
        self._client = client
        self._bucket_name = bucket_name
        self._expiry = timedelta(seconds=url_expiry_seconds)

    async def audio_locator(self, media_ref: str) -> str:
        """
        Returns a presigned URL for the audio rendition of an object.

        The `/audio/` rendition written next to the video is preferred; when
        none exists the video object itself is served.

        Raises:
            MediaStoreError: If MinIO cannot be queried or signed.
        """
        return await asyncio.to_thread(self._resolve, media_ref)

    def _resolve(self, media_ref: str) -> str:
        audio_name = self._derive_audio_object_name(media_ref)
        try:
            object_name = audio_name if self._exists(audio_name) else media_ref
            url = self._client.presigned_get_object(
                self._bucket_name, object_name, expires=self._expiry
            )
        except Exception as e:
            logger.exception(
                "MinIO audio lookup failed",
                extra={"bucket": self._bucket_name, "object": media_ref},
            )
            raise MediaStoreError(media_ref, cause=e) from e

        logger.info(
            "Audio locator resolved",
            extra={"bucket": self._bucket_name, "object": object_name},
        )
        return url

    def _exists(self, object_name: str) -> bool:
        try:
            self._client.stat_object(self._bucket_name, object_name)
            return True
        except S3Error as e:
            if e.code in _MISSING_OBJECT_CODES:
                return False
            raise

    def _derive_audio_object_name(self, video_object_name: str) -> str:
        """Converts a video path to its audio path (/video/x.mp4 -> /audio/x.mp3)."""
        audio_name = video_object_name.replace("/video/", "/audio/")
        return os.path.splitext(audio_name)[0] + ".mp3"

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(self._bucket_name):
            self._client.make_bucket(self._bucket_name)
            logger.info("Bucket created", extra={"bucket": self._bucket_name})
        else:
            logger.info("Bucket exists", extra={"bucket": self._bucket_name})
