"""Background job exports."""

from lecture_pipeline.jobs.scheduler import ScheduledTask, TaskScheduler
from lecture_pipeline.jobs.transcript_queue import TranscriptQueue

__all__ = ["ScheduledTask", "TaskScheduler", "TranscriptQueue"]
