"""In-process priority queue that drives transcript generation."""

import asyncio
import itertools
import uuid
from collections.abc import Awaitable, Callable
from typing import Protocol

from lecture_pipeline.config import JobQueueConfig
from lecture_pipeline.domain import QueueStatus, TranscriptJob, TranscriptResult
from lecture_pipeline.logging import setup_logging

logger = setup_logging(__name__)

CompletionListener = Callable[[TranscriptJob], Awaitable[None]]


class TranscriptProducer(Protocol):
    async def generate(self, media_ref: str, video_id: str) -> TranscriptResult: ...


class TranscriptQueue:
    """
    Priority-ordered, single-consumer job queue with bounded retries.

    Jobs run one at a time, highest priority first and FIFO among equal
    priorities. A failed attempt puts the job back to pending and the worker
    waits `2**attempts * base_backoff_seconds` before picking work again; after
    `max_attempts` failures the job moves to the failed history and is never
    retried unless re-enqueued. The worker goes idle when no pending job is
    left and restarts on the next `enqueue`.
    """

    def __init__(
        self,
        generator: TranscriptProducer,
        config: JobQueueConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._generator = generator
        self._config = config
        self._sleep = sleep
        self._jobs: list[TranscriptJob] = []
        self._failed: list[TranscriptJob] = []
        self._completed = 0
        self._sequence = itertools.count()
        self._current: TranscriptJob | None = None
        self._worker: asyncio.Task | None = None
        self._listeners: list[CompletionListener] = []

    def add_completion_listener(self, listener: CompletionListener) -> None:
        """Registers a coroutine called with each job that completes."""
        self._listeners.append(listener)

    def enqueue(
        self,
        video_id: str,
        media_ref: str,
        priority: int = 0,
        generate_quiz: bool = True,
    ) -> TranscriptJob:
        """
        Adds a pending job and starts the worker if it is idle.

        Must be called from a running event loop. Duplicate enqueues create
        additional jobs. `generate_quiz` travels on the job for completion
        listeners.
        """
        loop = asyncio.get_running_loop()
        job = TranscriptJob(
            id=str(uuid.uuid4()),
            video_id=video_id,
            media_ref=media_ref,
            priority=priority,
            sequence=next(self._sequence),
            max_attempts=self._config.max_attempts,
            generate_quiz=generate_quiz,
        )
        self._jobs.append(job)
        self._jobs.sort(key=lambda j: (-j.priority, j.sequence))

        logger.info(
            "Transcript job enqueued",
            extra={
                "job_id": job.id,
                "video_id": video_id,
                "priority": priority,
                "queue_length": len(self._jobs),
            },
        )

        if self._worker is None:
            self._worker = loop.create_task(
                self._run(), name="transcript-queue-worker"
            )
            self._worker.add_done_callback(self._on_worker_done)

        return job

    def status(self) -> QueueStatus:
        return QueueStatus(
            pending=sum(1 for j in self._jobs if j.status == "pending"),
            processing=sum(1 for j in self._jobs if j.status == "processing"),
            total=len(self._jobs),
            completed=self._completed,
            failed=len(self._failed),
            running=self._worker is not None,
            current_video_id=self._current.video_id if self._current else None,
        )

    def jobs(self) -> list[TranscriptJob]:
        """Returns copies of the active jobs followed by the failed history."""
        return [job.model_copy() for job in [*self._jobs, *self._failed]]

    def clear_failed(self) -> int:
        """Purges the failed history and returns how many jobs were removed."""
        cleared = len(self._failed)
        self._failed.clear()
        logger.info("Failed transcript jobs cleared", extra={"count": cleared})
        return cleared

    def retry_failed(self) -> int:
        """Re-enqueues every failed job as a fresh job and clears the history."""
        failed, self._failed = self._failed, []
        for job in failed:
            self.enqueue(job.video_id, job.media_ref, job.priority, job.generate_quiz)
        logger.info("Failed transcript jobs re-enqueued", extra={"count": len(failed)})
        return len(failed)

    def clear_all(self) -> int:
        """Drops pending jobs and the failed history; a job in flight finishes."""
        pending = [j for j in self._jobs if j.status == "pending"]
        self._jobs = [j for j in self._jobs if j.status != "pending"]
        cleared = len(pending) + len(self._failed)
        self._failed.clear()
        logger.info("Transcript queue cleared", extra={"count": cleared})
        return cleared

    async def join(self) -> None:
        """Waits until the worker is idle."""
        while self._worker is not None:
            await asyncio.shield(self._worker)

    async def stop(self) -> None:
        """Cancels the worker; an interrupted job goes back to pending."""
        worker = self._worker
        if worker is None:
            return
        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        logger.info("Transcript queue worker started")
        while True:
            job = next((j for j in self._jobs if j.status == "pending"), None)
            if job is None:
                break
            await self._process(job)
        logger.info("Transcript queue worker idle")

    async def _process(self, job: TranscriptJob) -> None:
        job.status = "processing"
        job.attempts += 1
        self._current = job

        logger.info(
            "Processing transcript job",
            extra={
                "job_id": job.id,
                "video_id": job.video_id,
                "attempt": job.attempts,
                "max_attempts": job.max_attempts,
            },
        )

        try:
            await self._generator.generate(job.media_ref, job.video_id)
        except asyncio.CancelledError:
            self._current = None
            job.status = "pending"
            job.attempts -= 1
            logger.warning(
                "Transcript job interrupted, returned to pending",
                extra={"job_id": job.id, "video_id": job.video_id},
            )
            raise
        except Exception as e:
            self._current = None
            job.error = str(e)
            if job.attempts < job.max_attempts:
                job.status = "pending"
                delay = 2**job.attempts * self._config.base_backoff_seconds
                logger.warning(
                    "Transcript job failed, retrying after backoff",
                    extra={
                        "job_id": job.id,
                        "video_id": job.video_id,
                        "attempt": job.attempts,
                        "backoff_seconds": delay,
                        "error": str(e),
                    },
                )
                await self._sleep(delay)
            else:
                job.status = "failed"
                self._jobs.remove(job)
                self._failed.append(job)
                logger.error(
                    "Transcript job failed permanently",
                    extra={
                        "job_id": job.id,
                        "video_id": job.video_id,
                        "attempts": job.attempts,
                        "error": str(e),
                    },
                )
            return

        self._current = None
        job.status = "completed"
        job.error = None
        self._jobs.remove(job)
        self._completed += 1
        logger.info(
            "Transcript job completed",
            extra={"job_id": job.id, "video_id": job.video_id, "attempts": job.attempts},
        )

        await self._notify(job)
        await self._sleep(self._config.inter_job_delay_seconds)

    async def _notify(self, job: TranscriptJob) -> None:
        for listener in self._listeners:
            try:
                await listener(job)
            except Exception:
                logger.exception(
                    "Transcript completion listener failed",
                    extra={"job_id": job.id, "video_id": job.video_id},
                )

    def _on_worker_done(self, task: asyncio.Task) -> None:
        if self._worker is task:
            self._worker = None
            self._current = None
