"""Abstract interface for speech-to-text providers."""

from abc import ABC, abstractmethod

from lecture_pipeline.domain.models import RawProviderResponse


class TranscriptionProvider(ABC):
    """Abstract base class for speech-to-text backends."""

    name: str = "unknown"

    @abstractmethod
    async def transcribe(self, audio_locator: str) -> RawProviderResponse:
        """
        Transcribes the audio found at `audio_locator`.

        Args:
            audio_locator: URL of an audio (or audio-bearing) rendition.

        Returns:
            The provider response in vendor-neutral form.

        Raises:
            ProviderError: If the provider call fails.
        """
