"""Domain layer exports."""

from lecture_pipeline.domain.models import (
    QueueStatus,
    QuizQuestion,
    QuizSource,
    RawProviderResponse,
    RawSegment,
    RawWord,
    Segment,
    TranscriptCompletedEvent,
    TranscriptJob,
    TranscriptResult,
    TranscriptSnapshot,
    VideoContext,
    VideoUploadedEvent,
)
from lecture_pipeline.domain.quiz_parser import parse_quiz_response
from lecture_pipeline.domain.transcript_normalizer import normalize_response

__all__ = [
    "QueueStatus",
    "QuizQuestion",
    "QuizSource",
    "RawProviderResponse",
    "RawSegment",
    "RawWord",
    "Segment",
    "TranscriptCompletedEvent",
    "TranscriptJob",
    "TranscriptResult",
    "TranscriptSnapshot",
    "VideoContext",
    "VideoUploadedEvent",
    "normalize_response",
    "parse_quiz_response",
]
