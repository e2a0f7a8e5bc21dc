"""Deepgram implementation of the TranscriptionProvider interface."""

import httpx

from lecture_pipeline.domain.models import RawProviderResponse, RawWord
from lecture_pipeline.exceptions import ProviderError
from lecture_pipeline.logging import setup_logging

from .interfaces import TranscriptionProvider

logger = setup_logging(__name__)


class DeepgramTranscriber(TranscriptionProvider):
    """Single-call transcription of a hosted audio URL using Deepgram."""

    name = "deepgram"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        model: str = "nova-3",
        language: str = "en",
        base_url: str = "https://api.deepgram.com/v1",
    ):
        self._http = http_client
        self._api_key = api_key
        self._model = model
        self._language = language
        self._base_url = base_url.rstrip("/")

    async def transcribe(self, audio_locator: str) -> RawProviderResponse:
        try:
            response = await self._http.post(
                f"{self._base_url}/listen",
                params={
                    "model": self._model,
                    "language": self._language,
                    "smart_format": "true",
                    "punctuate": "true",
                },
                headers={"Authorization": f"Token {self._api_key}"},
                json={"url": audio_locator},
            )
        except httpx.HTTPError as e:
            logger.exception("Deepgram request failed")
            raise ProviderError(self.name, f"Request failed: {e}", cause=e) from e

        if response.status_code != 200:
            # Never log the key, only a truncated body
            body = response.text[:300] if response.text else "No response body"
            raise ProviderError(
                self.name, f"Deepgram returned {response.status_code}: {body}"
            )

        try:
            payload = response.json()
            channel = payload["results"]["channels"][0]
            alternative = channel["alternatives"][0]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, "Malformed Deepgram response", cause=e) from e

        words = tuple(
            RawWord(
                word=w.get("punctuated_word") or w.get("word", ""),
                start=w.get("start", 0.0),
                end=w.get("end", 0.0),
                confidence=w.get("confidence"),
            )
            for w in alternative.get("words", [])
        )

        logger.info(
            "Deepgram transcription successful",
            extra={"word_count": len(words)},
        )
        return RawProviderResponse(
            provider=self.name,
            text=alternative.get("transcript", ""),
            language=channel.get("detected_language") or self._language,
            confidence=alternative.get("confidence"),
            words=words,
        )
