"""Transcript generation: media resolution, provider dispatch, persistence."""

import asyncio
from collections.abc import Mapping

from lecture_pipeline.domain import TranscriptResult, normalize_response
from lecture_pipeline.exceptions import UnsupportedProviderError
from lecture_pipeline.infrastructure.interfaces import MediaStore, TranscriptionProvider
from lecture_pipeline.logging import setup_logging
from lecture_pipeline.repositories import VideoRepository

logger = setup_logging(__name__)


class TranscriptGenerator:
    """Produces and stores the transcript of one video with the configured provider."""

    def __init__(
        self,
        media_store: MediaStore,
        providers: Mapping[str, TranscriptionProvider],
        provider_name: str,
        repository: VideoRepository,
        default_language: str = "en",
    ):
        self._media_store = media_store
        self._providers = providers
        self._provider_name = provider_name
        self._repository = repository
        self._default_language = default_language

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def provider(self) -> TranscriptionProvider:
        """
        Returns the configured provider.

        Raises:
            UnsupportedProviderError: If it is not available.
        """
        provider = self._providers.get(self._provider_name)
        if provider is None:
            raise UnsupportedProviderError(self._provider_name)
        return provider

    async def generate(self, media_ref: str, video_id: str) -> TranscriptResult:
        """
        Transcribes a video's audio and upserts its transcript as COMPLETED.

        A failed provider call leaves any stored transcript untouched; no
        FAILED row is written.

        Args:
            media_ref: The video's media reference.
            video_id: The video the transcript belongs to.

        Returns:
            The normalized transcript that was stored.

        Raises:
            UnsupportedProviderError: If the configured provider is not available.
            MediaStoreError: If no audio locator can be derived.
            ProviderError: If the provider call fails.
            PersistenceError: If the transcript cannot be saved.
        """
        provider = self.provider()

        logger.info(
            "Generating transcript",
            extra={"video_id": video_id, "provider": self._provider_name},
        )

        audio_locator = await self._media_store.audio_locator(media_ref)
        raw = await provider.transcribe(audio_locator)
        result = normalize_response(raw, self._default_language)

        await asyncio.to_thread(self._repository.upsert_transcript, video_id, result)

        logger.info(
            "Transcript generated",
            extra={
                "video_id": video_id,
                "provider": result.provider,
                "language": result.language,
                "confidence": result.confidence,
                "segments": len(result.segments),
            },
        )
        return result
