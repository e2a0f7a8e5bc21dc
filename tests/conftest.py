from contextlib import contextmanager

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from lecture_pipeline.config import AppConfig, GeminiConfig, MinioConfig, PostgresConfig, RabbitMQConfig
from lecture_pipeline.db_models import Course, Transcript, Video
from lecture_pipeline.repositories import VideoRepository

from fakes import MEDIA_REF, VIDEO_ID


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    @contextmanager
    def factory():
        with Session(engine) as session:
            yield session

    return factory


@pytest.fixture
def repository(session_factory):
    return VideoRepository(session_factory)


@pytest.fixture
def video_id(session_factory):
    """A video with media in a course, without transcript or quiz."""
    with session_factory() as db_session:
        course = Course(id="course-1", title="Algorithms 101", category="Computer Science", level="BEGINNER")
        db_session.add(course)
        db_session.add(
            Video(
                id=VIDEO_ID,
                course_id=course.id,
                title="Sorting Algorithms",
                description="Bubble sort, merge sort and quicksort compared.",
                ai_prompt="Focus on time complexity.",
                media_ref=MEDIA_REF,
            )
        )
        db_session.commit()
    return VIDEO_ID


@pytest.fixture
def completed_transcript(session_factory, video_id):
    with session_factory() as db_session:
        db_session.add(
            Transcript(
                video_id=video_id,
                content="Merge sort splits the list in half and merges sorted halves.",
                language="en",
                status="COMPLETED",
                confidence=0.92,
                provider="fake",
                segments=[{"start": 0.0, "end": 4.0, "text": "Merge sort splits the list.", "confidence": 0.92}],
            )
        )
        db_session.commit()
    return video_id


@pytest.fixture
def app_config():
    return AppConfig(
        minio=MinioConfig(endpoint="localhost:9000", user="minio", password="minio"),
        postgres=PostgresConfig(host="localhost", user="app", password="app", port=5432, database="lectures"),
        rabbitmq=RabbitMQConfig(host="localhost", user="guest", password="guest"),
        gemini=GeminiConfig(api_key="test-key"),
    )
