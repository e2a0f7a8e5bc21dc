from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Course(SQLModel, table=True):
    __tablename__ = "courses"

    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str = Field(max_length=255)
    category: str = Field(default="", max_length=255)
    level: str = Field(default="INTERMEDIATE", max_length=50)


class Video(SQLModel, table=True):
    __tablename__ = "videos"

    id: str = Field(default_factory=_new_id, primary_key=True)
    course_id: Optional[str] = Field(default=None, foreign_key="courses.id")
    title: str = Field(max_length=255)
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    ai_prompt: str = Field(default="", sa_column=Column(Text, nullable=False))
    media_ref: Optional[str] = Field(default=None, max_length=1024)
    created_at: datetime = Field(default_factory=_utcnow)


class Transcript(SQLModel, table=True):
    __tablename__ = "transcripts"

    id: str = Field(default_factory=_new_id, primary_key=True)
    video_id: str = Field(foreign_key="videos.id", unique=True, index=True)
    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    language: str = Field(default="en", max_length=16)
    status: str = Field(default="PENDING", max_length=16)
    confidence: Optional[float] = None
    provider: Optional[str] = Field(default=None, max_length=32)
    segments: List[dict] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    error: Optional[str] = None
    generated_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=_utcnow)


class QuizQuestionRecord(SQLModel, table=True):
    __tablename__ = "quiz_questions"

    id: Optional[int] = Field(default=None, primary_key=True)
    video_id: str = Field(foreign_key="videos.id", index=True)
    question: str = Field(sa_column=Column(Text, nullable=False))
    options: List[str] = Field(sa_column=Column(JSON, nullable=False))
    correct: int
    explanation: str = Field(default="", sa_column=Column(Text, nullable=False))
    difficulty: str = Field(default="medium", max_length=16)
    points: int = 10
    position: int
    source: str = Field(default="topic", max_length=16)
    created_at: datetime = Field(default_factory=_utcnow)
