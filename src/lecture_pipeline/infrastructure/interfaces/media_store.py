"""Abstract interface for media host operations."""

from abc import ABC, abstractmethod


class MediaStore(ABC):
    """Abstract base class for media hosts that serve lecture videos."""

    @abstractmethod
    async def audio_locator(self, media_ref: str) -> str:
        """
        Resolves a locator suitable for audio transcription.

        Args:
            media_ref: The video's media reference (URL or object key).

        Returns:
            A URL the transcription provider can fetch.

        Raises:
            MediaStoreError: If the reference cannot be resolved.
        """
