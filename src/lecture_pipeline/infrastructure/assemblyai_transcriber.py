"""AssemblyAI implementation of the TranscriptionProvider interface."""

import asyncio
from collections.abc import Awaitable, Callable

import assemblyai as aai

from lecture_pipeline.domain.models import RawProviderResponse, RawSegment, RawWord
from lecture_pipeline.exceptions import ProviderError
from lecture_pipeline.logging import setup_logging

from .interfaces import TranscriptionProvider

logger = setup_logging(__name__)


class AssemblyAITranscriber(TranscriptionProvider):
    """
    Submit-then-poll transcription using AssemblyAI.

    The audio URL is submitted once, then the transcript is fetched every
    `poll_interval_seconds` until it reaches a terminal status. There is no
    overall deadline here; the job queue's retry envelope bounds the work.
    """

    name = "assemblyai"

    def __init__(
        self,
        transcriber: aai.Transcriber,
        poll_interval_seconds: float = 5.0,
        fetch: Callable[[str], aai.Transcript] = aai.Transcript.get_by_id,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._transcriber = transcriber
        self._poll_interval_seconds = poll_interval_seconds
        self._fetch = fetch
        self._sleep = sleep

    async def transcribe(self, audio_locator: str) -> RawProviderResponse:
        try:
            submitted = await asyncio.to_thread(self._transcriber.submit, audio_locator)
            transcript_id = submitted.id
            logger.info(
                "AssemblyAI transcript submitted",
                extra={"transcript_id": transcript_id},
            )

            polls = 0
            while True:
                await self._sleep(self._poll_interval_seconds)
                polls += 1
                transcript = await asyncio.to_thread(self._fetch, transcript_id)

                if transcript.status == aai.TranscriptStatus.completed:
                    break
                if transcript.status == aai.TranscriptStatus.error:
                    raise ProviderError(
                        self.name, f"Transcript failed: {transcript.error}"
                    )

        except ProviderError:
            raise
        except Exception as e:
            logger.exception("AssemblyAI transcription failed")
            raise ProviderError(self.name, f"Transcription failed: {e}", cause=e) from e

        if transcript.text is None:
            raise ProviderError(self.name, "Transcription returned no text")

        logger.info(
            "AssemblyAI transcription successful",
            extra={"transcript_id": transcript_id, "polls": polls},
        )
        return self._to_raw(transcript)

    def _to_raw(self, transcript: aai.Transcript) -> RawProviderResponse:
        """Maps utterance (or word) timings, reported in milliseconds."""
        json_response = getattr(transcript, "json_response", None) or {}
        utterances = transcript.utterances or []

        segments = tuple(
            RawSegment(
                start=u.start,
                end=u.end,
                text=u.text,
                confidence=u.confidence,
            )
            for u in utterances
        )
        words = ()
        if not segments:
            words = tuple(
                RawWord(word=w.text, start=w.start, end=w.end, confidence=w.confidence)
                for w in transcript.words or []
            )

        return RawProviderResponse(
            provider=self.name,
            text=transcript.text,
            language=json_response.get("language_code"),
            confidence=transcript.confidence,
            segments=segments,
            words=words,
            time_unit="milliseconds",
        )
