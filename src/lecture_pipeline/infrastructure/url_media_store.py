"""Media store for videos served from a hosted media URL."""

import re
from urllib.parse import urlsplit, urlunsplit

from lecture_pipeline.exceptions import MediaStoreError
from lecture_pipeline.logging import setup_logging

from .interfaces import MediaStore

logger = setup_logging(__name__)

_VIDEO_EXTENSION = re.compile(r"\.(mp4|mov|avi|mkv|webm)$", re.IGNORECASE)


class UrlRenditionMediaStore(MediaStore):
    """
    Derives audio renditions by URL for hosts that transcode on request.

    On a rendition host, swapping the video extension for `.mp3` asks the host
    for the audio track. Other URLs are returned unchanged.
    """

    def __init__(self, rendition_hosts: tuple[str, ...] = ("cloudinary.com",)):
        self._rendition_hosts = rendition_hosts

    async def audio_locator(self, media_ref: str) -> str:
        parts = urlsplit(media_ref or "")
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise MediaStoreError(media_ref)

        if not any(parts.netloc.endswith(host) for host in self._rendition_hosts):
            return media_ref

        audio_path = _VIDEO_EXTENSION.sub(".mp3", parts.path)
        audio_url = urlunsplit(parts._replace(path=audio_path))
        logger.info("Audio rendition URL derived", extra={"audio_url": audio_url})
        return audio_url
