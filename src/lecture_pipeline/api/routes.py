"""Admin endpoints for the transcript and quiz pipeline."""

import asyncio
from typing import List, Literal

from fastapi import APIRouter, HTTPException, Response
from fastapi.responses import PlainTextResponse

from lecture_pipeline.api.dependencies import PipelineDep
from lecture_pipeline.api.response_models import (
    CountResponse,
    ProvidersResponse,
    QuizResponse,
    TranscriptRequest,
    TranscriptResponse,
)
from lecture_pipeline.domain import QueueStatus, TranscriptJob
from lecture_pipeline.domain.transcript_format import format_with_timestamps, to_vtt
from lecture_pipeline.exceptions import (
    GenerationError,
    UnsupportedProviderError,
    VideoNotFoundError,
)
from lecture_pipeline.logging import setup_logging

logger = setup_logging(__name__)

router = APIRouter(prefix="/admin/pipeline", tags=["pipeline"])


@router.get("/queue", response_model=QueueStatus)
async def get_queue_status(pipeline: PipelineDep):
    """Returns transcript queue counts."""
    return pipeline.queue.status()


@router.get("/queue/jobs", response_model=List[TranscriptJob])
async def list_jobs(pipeline: PipelineDep):
    """Returns active jobs followed by failed history."""
    return pipeline.queue.jobs()


@router.post("/queue/clear-failed", response_model=CountResponse)
async def clear_failed_jobs(pipeline: PipelineDep):
    """Purges the failed job history."""
    return CountResponse(count=pipeline.queue.clear_failed())


@router.post("/queue/retry-failed", response_model=CountResponse)
async def retry_failed_jobs(pipeline: PipelineDep):
    """Re-enqueues failed jobs with fresh attempts."""
    return CountResponse(count=pipeline.queue.retry_failed())


@router.post("/queue/clear-all", response_model=CountResponse)
async def clear_all_jobs(pipeline: PipelineDep):
    """Drops pending jobs and the failed history; a job in flight finishes."""
    return CountResponse(count=pipeline.queue.clear_all())


@router.post("/queue/missing", response_model=CountResponse)
async def queue_missing_transcripts(pipeline: PipelineDep):
    """Queues every video that has media but no completed transcript."""
    try:
        return CountResponse(count=await pipeline.hooks.queue_missing_transcripts())
    except Exception as e:
        logger.error(f"Error queueing missing transcripts: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/quizzes/missing", response_model=CountResponse)
async def generate_missing_quizzes(pipeline: PipelineDep):
    """Schedules quiz generation for every video without questions."""
    try:
        return CountResponse(count=await pipeline.hooks.generate_missing_quizzes())
    except Exception as e:
        logger.error(f"Error scheduling missing quizzes: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/videos/{video_id}/transcript", response_model=TranscriptJob, status_code=202
)
async def request_transcript(
    video_id: str, pipeline: PipelineDep, body: TranscriptRequest | None = None
):
    """Queues transcript generation for a video, even if one already exists."""
    priority = body.priority if body else 0
    try:
        video = await asyncio.to_thread(pipeline.repository.get_video_context, video_id)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail="Video not found")
    except Exception as e:
        logger.error(f"Error loading video {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if not video.media_ref:
        raise HTTPException(status_code=409, detail="Video has no media reference")
    try:
        pipeline.transcript_generator.provider()
    except UnsupportedProviderError:
        raise HTTPException(status_code=503, detail="Transcription provider unavailable")

    return pipeline.queue.enqueue(video_id, video.media_ref, priority)


@router.get("/videos/{video_id}/transcript", response_model=TranscriptResponse)
async def get_transcript(
    video_id: str,
    pipeline: PipelineDep,
    format: Literal["json", "text", "timestamps", "vtt"] = "json",
):
    """Returns a video's transcript as JSON, plain text, timestamped text, or WebVTT."""
    try:
        transcript = await asyncio.to_thread(pipeline.repository.get_transcript, video_id)
    except Exception as e:
        logger.error(f"Error loading transcript {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if transcript is None:
        raise HTTPException(status_code=404, detail="Transcript not found")

    if format == "text":
        return PlainTextResponse(transcript.content)
    if format == "timestamps":
        return PlainTextResponse(format_with_timestamps(transcript.segments))
    if format == "vtt":
        return Response(content=to_vtt(transcript.segments), media_type="text/vtt")

    return TranscriptResponse(
        video_id=video_id,
        status=transcript.status,
        content=transcript.content,
        language=transcript.language,
        confidence=transcript.confidence,
        provider=transcript.provider,
        segments=list(transcript.segments),
        generated_at=transcript.generated_at,
    )


@router.post("/videos/{video_id}/quiz", response_model=QuizResponse)
async def generate_quiz(video_id: str, pipeline: PipelineDep):
    """Generates and stores a quiz for a video, replacing any existing one."""
    try:
        questions = await pipeline.quiz_generator.generate(video_id)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail="Video not found")
    except GenerationError:
        raise HTTPException(status_code=502, detail="Quiz generation failed")
    except Exception as e:
        logger.error(f"Error generating quiz {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return QuizResponse(video_id=video_id, questions=questions)


@router.get("/videos/{video_id}/quiz", response_model=QuizResponse)
async def get_quiz(video_id: str, pipeline: PipelineDep):
    """Returns a video's stored quiz."""
    try:
        await asyncio.to_thread(pipeline.repository.get_video_context, video_id)
        questions = await asyncio.to_thread(pipeline.repository.list_questions, video_id)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail="Video not found")
    except Exception as e:
        logger.error(f"Error loading quiz {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return QuizResponse(video_id=video_id, questions=questions)


@router.get("/providers", response_model=ProvidersResponse)
def list_providers(pipeline: PipelineDep):
    """Returns the configured provider and the providers with credentials."""
    return ProvidersResponse(
        configured=pipeline.transcript_generator.provider_name,
        available=sorted(pipeline.providers),
    )
