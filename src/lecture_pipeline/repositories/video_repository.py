"""Repository for video, transcript, and quiz persistence."""

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, or_
from sqlmodel import Session, col, select

from lecture_pipeline.db_models import Course, QuizQuestionRecord, Transcript, Video
from lecture_pipeline.domain.models import (
    QuizQuestion,
    QuizSource,
    Segment,
    TranscriptResult,
    TranscriptSnapshot,
    VideoContext,
)
from lecture_pipeline.exceptions import PersistenceError, VideoNotFoundError
from lecture_pipeline.logging import setup_logging

logger = setup_logging(__name__)


class VideoRepository:
    """
    Handles database operations for the transcript and quiz pipeline.

    Transcripts are written with upsert semantics (one row per video) and
    quizzes with delete-then-insert, so re-running either generator never
    duplicates rows.
    """

    def __init__(self, session_factory):
        """
        Initializes the repository.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
        """
        self._session_factory = session_factory

    def get_video_context(self, video_id: str) -> VideoContext:
        """
        Loads a video with its transcript and course metadata.

        Raises:
            VideoNotFoundError: If the video does not exist.
            PersistenceError: If the query fails.
        """
        try:
            with self._session_factory() as db_session:
                video = db_session.get(Video, video_id)
                if video is None:
                    raise VideoNotFoundError(video_id)

                course = db_session.get(Course, video.course_id) if video.course_id else None
                transcript = self._find_transcript(db_session, video_id)

                return VideoContext(
                    video_id=video.id,
                    title=video.title,
                    description=video.description or "",
                    ai_prompt=video.ai_prompt or "",
                    media_ref=video.media_ref,
                    course_title=course.title if course else "",
                    category=course.category if course else "",
                    level=course.level if course else "INTERMEDIATE",
                    transcript=self._snapshot(transcript) if transcript else None,
                )
        except VideoNotFoundError:
            raise
        except Exception as e:
            logger.exception("Failed to load video", extra={"video_id": video_id})
            raise PersistenceError(video_id, "read", cause=e) from e

    def get_transcript(self, video_id: str) -> TranscriptSnapshot | None:
        """Returns the stored transcript for a video, if any."""
        try:
            with self._session_factory() as db_session:
                transcript = self._find_transcript(db_session, video_id)
                return self._snapshot(transcript) if transcript else None
        except Exception as e:
            logger.exception("Failed to load transcript", extra={"video_id": video_id})
            raise PersistenceError(video_id, "read", cause=e) from e

    def upsert_transcript(self, video_id: str, result: TranscriptResult) -> None:
        """
        Creates or overwrites the transcript of a video as COMPLETED.

        Raises:
            PersistenceError: If the write fails.
        """
        try:
            with self._session_factory() as db_session:
                transcript = self._find_transcript(db_session, video_id)
                if transcript is None:
                    transcript = Transcript(video_id=video_id)

                now = datetime.now(timezone.utc)
                transcript.content = result.text
                transcript.language = result.language
                transcript.status = "COMPLETED"
                transcript.confidence = result.confidence
                transcript.provider = result.provider
                transcript.segments = [s.model_dump() for s in result.segments]
                transcript.error = None
                transcript.generated_at = now
                transcript.updated_at = now

                db_session.add(transcript)
                db_session.commit()

                logger.info(
                    "Transcript saved",
                    extra={
                        "video_id": video_id,
                        "chars": len(result.text),
                        "segments": len(result.segments),
                    },
                )
        except Exception as e:
            logger.exception("Failed to save transcript", extra={"video_id": video_id})
            raise PersistenceError(video_id, "transcript upsert", cause=e) from e

    def replace_questions(
        self, video_id: str, questions: Sequence[QuizQuestion], source: QuizSource
    ) -> int:
        """
        Replaces a video's quiz with `questions` in one transaction.

        Returns:
            The number of questions removed.

        Raises:
            PersistenceError: If the write fails; the previous quiz is kept.
        """
        try:
            with self._session_factory() as db_session:
                deleted = self._delete_questions(db_session, video_id)
                self._insert_questions(db_session, video_id, questions, source)
                db_session.commit()
        except Exception as e:
            logger.exception("Failed to replace questions", extra={"video_id": video_id})
            raise PersistenceError(video_id, "question replace", cause=e) from e

        logger.info(
            "Quiz questions replaced",
            extra={
                "video_id": video_id,
                "deleted": deleted,
                "inserted": len(questions),
                "source": source,
            },
        )
        return deleted

    def list_questions(self, video_id: str) -> list[QuizQuestion]:
        """Returns a video's stored questions ordered by position."""
        try:
            with self._session_factory() as db_session:
                statement = (
                    select(QuizQuestionRecord)
                    .where(QuizQuestionRecord.video_id == video_id)
                    .order_by(QuizQuestionRecord.position)
                )
                return [
                    QuizQuestion(
                        question=r.question,
                        options=tuple(r.options),
                        correct=r.correct,
                        explanation=r.explanation,
                        difficulty=r.difficulty,
                        points=r.points,
                        position=r.position,
                    )
                    for r in db_session.exec(statement).all()
                ]
        except Exception as e:
            logger.exception("Failed to list questions", extra={"video_id": video_id})
            raise PersistenceError(video_id, "read", cause=e) from e

    def list_videos_missing_transcripts(self) -> list[tuple[str, str]]:
        """Returns (video_id, media_ref) for videos without a COMPLETED transcript."""
        with self._session_factory() as db_session:
            statement = (
                select(Video.id, Video.media_ref)
                .join(Transcript, Transcript.video_id == Video.id, isouter=True)
                .where(col(Video.media_ref).is_not(None))
                .where(or_(col(Transcript.id).is_(None), Transcript.status != "COMPLETED"))
                .order_by(col(Video.created_at).desc())
            )
            return [(video_id, media_ref) for video_id, media_ref in db_session.exec(statement).all()]

    def list_videos_without_questions(self) -> list[str]:
        """Returns the ids of videos that have no quiz questions."""
        with self._session_factory() as db_session:
            with_questions = select(QuizQuestionRecord.video_id).distinct()
            statement = (
                select(Video.id)
                .where(col(Video.id).not_in(with_questions))
                .order_by(col(Video.created_at).desc())
            )
            return list(db_session.exec(statement).all())

    def _find_transcript(self, db_session: Session, video_id: str) -> Transcript | None:
        statement = select(Transcript).where(Transcript.video_id == video_id)
        return db_session.exec(statement).first()

    def _delete_questions(self, db_session: Session, video_id: str) -> int:
        result = db_session.execute(
            delete(QuizQuestionRecord).where(QuizQuestionRecord.video_id == video_id)
        )
        return result.rowcount or 0

    def _insert_questions(
        self,
        db_session: Session,
        video_id: str,
        questions: Sequence[QuizQuestion],
        source: QuizSource,
    ) -> None:
        for position, question in enumerate(questions, start=1):
            db_session.add(
                QuizQuestionRecord(
                    video_id=video_id,
                    question=question.question,
                    options=list(question.options),
                    correct=question.correct,
                    explanation=question.explanation,
                    difficulty=question.difficulty,
                    points=question.points,
                    position=position,
                    source=source,
                )
            )

    @staticmethod
    def _snapshot(transcript: Transcript) -> TranscriptSnapshot:
        return TranscriptSnapshot(
            status=transcript.status,
            content=transcript.content or "",
            language=transcript.language,
            confidence=transcript.confidence,
            provider=transcript.provider,
            segments=tuple(Segment.model_validate(s) for s in transcript.segments or []),
            generated_at=transcript.generated_at,
        )
