"""OpenAI Whisper implementation of the TranscriptionProvider interface."""

import posixpath
from typing import Any
from urllib.parse import urlsplit

import httpx
from openai import AsyncOpenAI

from lecture_pipeline.domain.models import RawProviderResponse, RawSegment
from lecture_pipeline.exceptions import ProviderError
from lecture_pipeline.logging import setup_logging

from .interfaces import TranscriptionProvider

logger = setup_logging(__name__)


class OpenAIWhisperTranscriber(TranscriptionProvider):
    """Single-call transcription using OpenAI Whisper."""

    name = "openai"

    def __init__(
        self,
        client: AsyncOpenAI,
        http_client: httpx.AsyncClient,
        model: str = "whisper-1",
        language: str = "en",
        max_audio_bytes: int = 25 * 1024 * 1024,
    ):
        self._client = client
        self._http = http_client
        self._model = model
        self._language = language
        self._max_audio_bytes = max_audio_bytes

    async def transcribe(self, audio_locator: str) -> RawProviderResponse:
        """
        Downloads the audio and transcribes it with segment timestamps.

        Whisper only accepts uploaded files, so the audio rendition is fetched
        first and checked against the upload size limit.
        """
        try:
            response = await self._http.get(audio_locator, follow_redirects=True)
            response.raise_for_status()
            audio = response.content

            if len(audio) > self._max_audio_bytes:
                raise ProviderError(
                    self.name,
                    f"Audio file too large: {len(audio) / 1024 / 1024:.1f}MB "
                    f"(max {self._max_audio_bytes / 1024 / 1024:.0f}MB)",
                )

            logger.info(
                "Audio downloaded for Whisper",
                extra={"size_bytes": len(audio)},
            )

            transcription = await self._client.audio.transcriptions.create(
                file=(self._file_name(audio_locator), audio),
                model=self._model,
                language=self._language,
                response_format="verbose_json",
                timestamp_granularities=["segment"],
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.exception("OpenAI transcription failed")
            raise ProviderError(self.name, f"Transcription failed: {e}", cause=e) from e

        segments = tuple(
            RawSegment(
                start=_field(s, "start", 0.0),
                end=_field(s, "end", 0.0),
                text=_field(s, "text", ""),
                confidence=_field(s, "avg_logprob", None),
            )
            for s in _field(transcription, "segments", None) or []
        )

        logger.info(
            "OpenAI transcription successful",
            extra={"segment_count": len(segments)},
        )
        return RawProviderResponse(
            provider=self.name,
            text=_field(transcription, "text", ""),
            language=_language_code(_field(transcription, "language", None)),
            segments=segments,
            confidence_kind="log_probability",
        )

    @staticmethod
    def _file_name(audio_locator: str) -> str:
        return posixpath.basename(urlsplit(audio_locator).path) or "audio.mp3"


def _field(obj: Any, name: str, default: Any) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _language_code(language: str | None) -> str | None:
    # verbose_json reports the language name ("english"), not its code
    if not language:
        return None
    return {"english": "en"}.get(language.lower(), language)
