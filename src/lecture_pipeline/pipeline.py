"""Composition root for the transcript and quiz pipeline."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from contextlib import contextmanager

import assemblyai as aai
import httpx
from google import genai
from minio import Minio
from openai import AsyncOpenAI
from sqlmodel import Session, SQLModel, create_engine

from lecture_pipeline.config import AppConfig
from lecture_pipeline.handlers import QuizGenerator, TranscriptGenerator
from lecture_pipeline.hooks import PipelineHooks
from lecture_pipeline.infrastructure import (
    AssemblyAITranscriber,
    DeepgramTranscriber,
    GeminiLLMService,
    MinioMediaStore,
    OpenAIWhisperTranscriber,
    UrlRenditionMediaStore,
)
from lecture_pipeline.infrastructure.interfaces import (
    LLMService,
    MediaStore,
    TranscriptionProvider,
)
from lecture_pipeline.jobs import TaskScheduler, TranscriptQueue
from lecture_pipeline.logging import setup_logging
from lecture_pipeline.repositories import VideoRepository

logger = setup_logging(__name__)


class Pipeline:
    """Holds the wired pipeline components of one process."""

    def __init__(
        self,
        config: AppConfig,
        repository: VideoRepository,
        providers: Mapping[str, TranscriptionProvider],
        transcript_generator: TranscriptGenerator,
        quiz_generator: QuizGenerator,
        queue: TranscriptQueue,
        scheduler: TaskScheduler,
        hooks: PipelineHooks,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.repository = repository
        self.providers = providers
        self.transcript_generator = transcript_generator
        self.quiz_generator = quiz_generator
        self.queue = queue
        self.scheduler = scheduler
        self.hooks = hooks
        self._http_client = http_client

    async def aclose(self) -> None:
        """Stops background work and releases HTTP connections."""
        await self.queue.stop()
        self.scheduler.cancel_all()
        await self.scheduler.join()
        if self._http_client is not None:
            await self._http_client.aclose()
        logger.info("Pipeline closed")


def build_pipeline(
    config: AppConfig,
    session_factory=None,
    media_store: MediaStore | None = None,
    providers: Mapping[str, TranscriptionProvider] | None = None,
    llm: LLMService | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Pipeline:
    """
    Builds the pipeline from configuration.

    Any collaborator passed in replaces the one that would be built from
    `config`, which is how tests supply fakes.

    Args:
        config: The application configuration.
        session_factory: Callable returning a SQLModel Session context manager.
        media_store: Media store used to derive audio locators.
        providers: Speech-to-text providers keyed by name.
        llm: Language model used by both quiz tiers.
        sleep: Awaitable sleep used for queue backoff and scheduled delays.

    Returns:
        The wired pipeline.
    """
    if session_factory is None:
        session_factory = _build_session_factory(config)

    http_client = None
    if providers is None:
        http_client = httpx.AsyncClient(
            timeout=config.transcription.request_timeout_seconds
        )
        providers = _build_providers(config, http_client, sleep)

    if media_store is None:
        media_store = _build_media_store(config)

    if llm is None:
        llm = GeminiLLMService(
            genai.Client(api_key=config.gemini.api_key),
            config.gemini.model_name,
            temperature=config.gemini.temperature,
            top_k=config.gemini.top_k,
            top_p=config.gemini.top_p,
        )

    repository = VideoRepository(session_factory)
    transcript_generator = TranscriptGenerator(
        media_store,
        providers,
        config.transcription.provider,
        repository,
        default_language=config.transcription.language,
    )
    quiz_generator = QuizGenerator(llm, repository, config.quiz)
    queue = TranscriptQueue(transcript_generator, config.job_queue, sleep=sleep)
    scheduler = TaskScheduler(sleep=sleep)
    hooks = PipelineHooks(queue, quiz_generator, repository, scheduler, config.hooks)
    queue.add_completion_listener(hooks.on_job_completed)

    logger.info(
        "Pipeline built",
        extra={
            "provider": config.transcription.provider,
            "available_providers": sorted(providers),
            "media_store": config.media_store,
        },
    )

    return Pipeline(
        config,
        repository,
        providers,
        transcript_generator,
        quiz_generator,
        queue,
        scheduler,
        hooks,
        http_client=http_client,
    )


def _build_session_factory(config: AppConfig):
    engine = create_engine(config.postgres.url)
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized", extra={"host": config.postgres.host})

    @contextmanager
    def session_factory():
        """Creates a database session context manager."""
        with Session(engine) as session:
            yield session

    return session_factory


def _build_providers(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    sleep: Callable[[float], Awaitable[None]],
) -> dict[str, TranscriptionProvider]:
    """Builds every provider that has credentials configured."""
    settings = config.transcription
    providers: dict[str, TranscriptionProvider] = {}

    if settings.openai_api_key:
        providers["openai"] = OpenAIWhisperTranscriber(
            AsyncOpenAI(api_key=settings.openai_api_key),
            http_client,
            model=settings.openai_model,
            language=settings.language,
            max_audio_bytes=settings.max_audio_bytes,
        )

    if settings.deepgram_api_key:
        providers["deepgram"] = DeepgramTranscriber(
            http_client,
            settings.deepgram_api_key,
            model=settings.deepgram_model,
            language=settings.language,
            base_url=settings.deepgram_base_url,
        )

    if settings.assemblyai_api_key:
        aai.settings.api_key = settings.assemblyai_api_key
        transcriber = aai.Transcriber(
            config=aai.TranscriptionConfig(
                speaker_labels=settings.speaker_labels,
                language_detection=True,
            )
        )
        providers["assemblyai"] = AssemblyAITranscriber(
            transcriber,
            poll_interval_seconds=settings.poll_interval_seconds,
            sleep=sleep,
        )

    if settings.provider not in providers:
        logger.warning(
            "Configured transcription provider has no credentials",
            extra={"provider": settings.provider},
        )
    return providers


def _build_media_store(config: AppConfig) -> MediaStore:
    if config.media_store == "minio":
        client = Minio(
            endpoint=config.minio.endpoint,
            access_key=config.minio.user,
            secret_key=config.minio.password,
            secure=config.minio.secure,
        )
        store = MinioMediaStore(
            client, config.minio.bucket_name, config.minio.url_expiry_seconds
        )
        store.ensure_bucket_exists()
        return store
    return UrlRenditionMediaStore()
