"""Domain models for the transcript and quiz pipeline."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

TranscriptStatus = Literal["PENDING", "PROCESSING", "COMPLETED", "FAILED"]
JobStatus = Literal["pending", "processing", "completed", "failed"]
Difficulty = Literal["easy", "medium", "hard"]
QuizSource = Literal["transcript", "topic"]


class Segment(BaseModel, frozen=True):
    """A time-bounded span of transcript text, offsets in seconds."""

    start: float = Field(ge=0)
    end: float = Field(ge=0)
    text: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class TranscriptResult(BaseModel, frozen=True):
    """Canonical transcript produced from any provider response."""

    text: str
    language: str
    confidence: float = Field(ge=0.0, le=1.0)
    segments: tuple[Segment, ...] = ()
    provider: str = "unknown"


class RawSegment(BaseModel, frozen=True):
    """Segment-level timing as reported by a provider."""

    start: float
    end: float
    text: str
    confidence: float | None = None


class RawWord(BaseModel, frozen=True):
    """Word-level timing as reported by a provider."""

    word: str
    start: float
    end: float
    confidence: float | None = None


class RawProviderResponse(BaseModel, frozen=True):
    """
    Vendor-neutral envelope around a speech-to-text response.

    Adapters fill either `segments` or `words` and declare the units and
    confidence semantics they use; normalization into `TranscriptResult`
    happens in one place.
    """

    provider: str
    text: str
    language: str | None = None
    confidence: float | None = None
    segments: tuple[RawSegment, ...] = ()
    words: tuple[RawWord, ...] = ()
    time_unit: Literal["seconds", "milliseconds"] = "seconds"
    confidence_kind: Literal["probability", "log_probability"] = "probability"


class QuizQuestion(BaseModel, frozen=True):
    """A validated multiple-choice question."""

    question: str = Field(min_length=11)
    options: tuple[str, str, str, str]
    correct: int = Field(ge=0, le=3)
    explanation: str
    difficulty: Difficulty = "medium"
    points: int = Field(default=10, gt=0)
    position: int = Field(default=1, ge=1)


class TranscriptSnapshot(BaseModel, frozen=True):
    """Stored transcript state for a video."""

    status: TranscriptStatus
    content: str = ""
    language: str | None = None
    confidence: float | None = None
    provider: str | None = None
    segments: tuple[Segment, ...] = ()
    generated_at: datetime | None = None


class VideoContext(BaseModel, frozen=True):
    """Video metadata plus its transcript and course details."""

    video_id: str
    title: str
    description: str = ""
    ai_prompt: str = ""
    media_ref: str | None = None
    course_title: str = ""
    category: str = ""
    level: str = "INTERMEDIATE"
    transcript: TranscriptSnapshot | None = None

    @property
    def has_completed_transcript(self) -> bool:
        return (
            self.transcript is not None
            and self.transcript.status == "COMPLETED"
            and bool(self.transcript.content.strip())
        )


class TranscriptJob(BaseModel):
    """One queued unit of transcript-generation work."""

    id: str
    video_id: str
    media_ref: str
    priority: int = 0
    sequence: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    attempts: int = 0
    max_attempts: int = 3
    status: JobStatus = "pending"
    error: str | None = None
    generate_quiz: bool = True


class QueueStatus(BaseModel, frozen=True):
    """Operational counts for the transcript queue."""

    pending: int
    processing: int
    total: int
    completed: int
    failed: int
    running: bool
    current_video_id: str | None = None


class VideoUploadedEvent(BaseModel, frozen=True):
    """Incoming upload-completed event."""

    video_id: str
    generate_transcript: bool = True
    generate_quiz: bool = True
    priority: int = 0


class TranscriptCompletedEvent(BaseModel, frozen=True):
    """Incoming transcript-completed event."""

    video_id: str
