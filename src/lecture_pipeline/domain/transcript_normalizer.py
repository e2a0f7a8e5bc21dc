"""Normalization of provider responses into the canonical transcript."""

import math
from collections.abc import Sequence

from .models import RawProviderResponse, RawWord, Segment, TranscriptResult

DEFAULT_CONFIDENCE = 0.9
MAX_WORD_GAP_SECONDS = 1.0
MAX_WORDS_PER_SEGMENT = 40
_SENTENCE_ENDINGS = (".", "?", "!")


def normalize_response(
    raw: RawProviderResponse, default_language: str = "en"
) -> TranscriptResult:
    """
    Converts a provider response into a `TranscriptResult`.

    Word-level timings are grouped into segments, millisecond offsets become
    seconds, and log-probabilities become probabilities. The overall
    confidence falls back to the mean segment confidence, then to
    `DEFAULT_CONFIDENCE` when the provider reports none.

    Args:
        raw: The adapter's vendor-neutral response.
        default_language: Language code used when the provider reports none.

    Returns:
        The canonical, immutable transcript result.
    """
    scale = 1000.0 if raw.time_unit == "milliseconds" else 1.0

    if raw.segments:
        segments = [
            _segment(
                s.start / scale,
                s.end / scale,
                s.text,
                _probability(s.confidence, raw.confidence_kind),
            )
            for s in raw.segments
            if s.text.strip()
        ]
    elif raw.words:
        segments = group_words(raw.words, scale, raw.confidence_kind)
    else:
        segments = []

    text = raw.text.strip() or " ".join(s.text for s in segments)

    return TranscriptResult(
        text=text,
        language=raw.language or default_language,
        confidence=_overall_confidence(raw.confidence, segments),
        segments=tuple(segments),
        provider=raw.provider,
    )


def group_words(
    words: Sequence[RawWord],
    scale: float = 1.0,
    confidence_kind: str = "probability",
) -> list[Segment]:
    """Groups words into segments at sentence ends, long pauses, or a size cap."""
    segments: list[Segment] = []
    current: list[RawWord] = []

    def flush() -> None:
        if not current:
            return
        confidences = [
            c
            for c in (_probability(w.confidence, confidence_kind) for w in current)
            if c is not None
        ]
        segments.append(
            _segment(
                current[0].start / scale,
                current[-1].end / scale,
                " ".join(w.word.strip() for w in current),
                sum(confidences) / len(confidences) if confidences else None,
            )
        )
        current.clear()

    for word in words:
        if not word.word.strip():
            continue
        if current and (word.start - current[-1].end) / scale > MAX_WORD_GAP_SECONDS:
            flush()
        current.append(word)
        if (
            word.word.rstrip().endswith(_SENTENCE_ENDINGS)
            or len(current) >= MAX_WORDS_PER_SEGMENT
        ):
            flush()
    flush()

    return segments


def _segment(start: float, end: float, text: str, confidence: float | None) -> Segment:
    start = max(0.0, start)
    return Segment(
        start=start,
        end=max(start, end),
        text=text.strip(),
        confidence=confidence,
    )


def _probability(value: float | None, kind: str) -> float | None:
    if value is None:
        return None
    if kind == "log_probability":
        value = math.exp(value)
    return _clamp(value)


def _overall_confidence(reported: float | None, segments: list[Segment]) -> float:
    if reported is not None:
        return _clamp(reported)
    known = [s.confidence for s in segments if s.confidence is not None]
    if known:
        return _clamp(sum(known) / len(known))
    return DEFAULT_CONFIDENCE


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
