"""Event-driven sequencing of transcript and quiz generation."""

import asyncio

from lecture_pipeline.config import HooksConfig
from lecture_pipeline.domain import TranscriptJob
from lecture_pipeline.handlers import QuizGenerator
from lecture_pipeline.jobs import ScheduledTask, TaskScheduler, TranscriptQueue
from lecture_pipeline.logging import setup_logging
from lecture_pipeline.repositories import VideoRepository

logger = setup_logging(__name__)

MISSING_TRANSCRIPT_PRIORITY = -1


class PipelineHooks:
    """
    Reacts to upload and transcript-completion events.

    A requested transcript is queued and, when the upload asked for a quiz,
    the quiz waits for the transcript to complete. A quiz requested without a transcript is scheduled after
    `upload_quiz_delay_seconds`. Every failure is logged here and never
    reaches the caller that raised the event.
    """

    def __init__(
        self,
        queue: TranscriptQueue,
        quiz_generator: QuizGenerator,
        repository: VideoRepository,
        scheduler: TaskScheduler,
        config: HooksConfig,
    ):
        self._queue = queue
        self._quiz_generator = quiz_generator
        self._repository = repository
        self._scheduler = scheduler
        self._config = config

    async def on_video_uploaded(
        self,
        video_id: str,
        generate_transcript: bool = False,
        generate_quiz: bool = False,
        priority: int = 0,
    ) -> None:
        """Handles a completed upload."""
        logger.info(
            "Video uploaded",
            extra={
                "video_id": video_id,
                "generate_transcript": generate_transcript,
                "generate_quiz": generate_quiz,
            },
        )
        try:
            if generate_transcript:
                await self._request_transcript(video_id, generate_quiz, priority)
            elif generate_quiz:
                self.schedule_quiz(video_id, self._config.upload_quiz_delay_seconds)
        except Exception:
            logger.exception("Upload hook failed", extra={"video_id": video_id})

    async def on_transcript_completed(self, video_id: str) -> None:
        """Schedules quiz generation once a transcript has been stored."""
        try:
            self.schedule_quiz(video_id, self._config.transcript_settle_delay_seconds)
        except Exception:
            logger.exception("Transcript hook failed", extra={"video_id": video_id})

    async def on_job_completed(self, job: TranscriptJob) -> None:
        """Completion listener; skips the quiz for jobs queued without one."""
        if not job.generate_quiz:
            logger.info(
                "Transcript completed, quiz not requested",
                extra={"video_id": job.video_id},
            )
            return
        await self.on_transcript_completed(job.video_id)

    async def queue_missing_transcripts(
        self, priority: int = MISSING_TRANSCRIPT_PRIORITY
    ) -> int:
        """Enqueues every video that has media but no completed transcript."""
        missing = await asyncio.to_thread(
            self._repository.list_videos_missing_transcripts
        )
        for video_id, media_ref in missing:
            self._queue.enqueue(video_id, media_ref, priority)

        logger.info("Missing transcripts queued", extra={"count": len(missing)})
        return len(missing)

    async def generate_missing_quizzes(self) -> int:
        """Schedules quiz generation for every video without questions."""
        video_ids = await asyncio.to_thread(
            self._repository.list_videos_without_questions
        )
        for video_id in video_ids:
            self.schedule_quiz(video_id, 0)

        logger.info("Missing quizzes scheduled", extra={"count": len(video_ids)})
        return len(video_ids)

    def schedule_quiz(self, video_id: str, delay: float) -> ScheduledTask:
        return self._scheduler.schedule(
            delay, lambda: self._generate_quiz(video_id), name=f"quiz:{video_id}"
        )

    async def _request_transcript(
        self, video_id: str, generate_quiz: bool, priority: int
    ) -> None:
        video = await asyncio.to_thread(self._repository.get_video_context, video_id)

        if video.has_completed_transcript:
            logger.info(
                "Transcript already completed, not queueing",
                extra={"video_id": video_id},
            )
            if generate_quiz:
                self.schedule_quiz(video_id, self._config.transcript_settle_delay_seconds)
            return

        if not video.media_ref:
            logger.warning("Video has no media reference", extra={"video_id": video_id})
            if generate_quiz:
                self.schedule_quiz(video_id, self._config.upload_quiz_delay_seconds)
            return

        self._queue.enqueue(video_id, video.media_ref, priority, generate_quiz)

    async def _generate_quiz(self, video_id: str) -> None:
        try:
            await self._quiz_generator.generate(video_id)
        except Exception:
            logger.exception("Quiz generation hook failed", extra={"video_id": video_id})
