from datetime import datetime

from pydantic import BaseModel

from lecture_pipeline.domain import QuizQuestion, Segment
from lecture_pipeline.domain.models import TranscriptStatus


class TranscriptRequest(BaseModel):
    """Body of a manual transcript request."""

    priority: int = 0


class CountResponse(BaseModel):
    """Number of items affected by a queue operation."""

    count: int


class TranscriptResponse(BaseModel):
    """Stored transcript of a video."""

    video_id: str
    status: TranscriptStatus
    content: str
    language: str | None = None
    confidence: float | None = None
    provider: str | None = None
    segments: list[Segment]
    generated_at: datetime | None = None


class QuizResponse(BaseModel):
    """Stored quiz of a video."""

    video_id: str
    questions: list[QuizQuestion]


class ProvidersResponse(BaseModel):
    """Configured and available transcription providers."""

    configured: str
    available: list[str]
