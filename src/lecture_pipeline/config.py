"""Application configuration loaded from environment variables."""

import os
from typing import Literal

from pydantic import BaseModel


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    bucket_name: str = "lectures"
    secure: bool = False
    url_expiry_seconds: int = 3600


class PostgresConfig(BaseModel, frozen=True):
    """PostgreSQL connection configuration."""

    host: str
    user: str
    password: str
    port: int
    database: str

    @property
    def url(self) -> str:
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class QueueConfig(BaseModel, frozen=True):
    """RabbitMQ queue configuration for pipeline events."""

    name: str = "lecture_pipeline_events"
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    upload_routing_key: str = "video.upload.completed"
    transcript_routing_key: str = "transcript.generation.completed"
    dlq_name: str = "dlq_lecture_pipeline"
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str = "lecture.pipeline.failed"
    prefetch_count: int = 1

    @property
    def routing_keys(self) -> tuple[str, ...]:
        return (self.upload_routing_key, self.transcript_routing_key)


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    enabled: bool = False
    host: str
    user: str
    password: str
    exchange_name: str = "events"
    queue_config: QueueConfig = QueueConfig()


class JobQueueConfig(BaseModel, frozen=True):
    """Retry and pacing settings for the transcript job queue."""

    max_attempts: int = 3
    base_backoff_seconds: float = 5.0
    inter_job_delay_seconds: float = 2.0


class TranscriptionConfig(BaseModel, frozen=True):
    """Speech-to-text provider configuration."""

    provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "whisper-1"
    deepgram_api_key: str = ""
    deepgram_model: str = "nova-3"
    deepgram_base_url: str = "https://api.deepgram.com/v1"
    assemblyai_api_key: str = ""
    speaker_labels: bool = True
    language: str = "en"
    poll_interval_seconds: float = 5.0
    max_audio_bytes: int = 25 * 1024 * 1024
    request_timeout_seconds: float = 600.0


class GeminiConfig(BaseModel, frozen=True):
    """Gemini LLM configuration."""

    api_key: str
    model_name: str = "gemini-2.5-flash-lite"
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95


class QuizConfig(BaseModel, frozen=True):
    """Quiz synthesis settings."""

    question_count: int = 8
    transcript_min_questions: int = 5
    easy_count: int = 2
    medium_count: int = 4
    hard_count: int = 2
    default_points: int = 10
    truncate_threshold: int = 8000
    head_chars: int = 2000
    middle_chars: int = 4000
    tail_chars: int = 2000


class HooksConfig(BaseModel, frozen=True):
    """Delays used when sequencing transcript and quiz generation."""

    upload_quiz_delay_seconds: float = 30.0
    transcript_settle_delay_seconds: float = 2.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    media_store: Literal["minio", "url"] = "url"
    minio: MinioConfig
    postgres: PostgresConfig
    rabbitmq: RabbitMQConfig
    job_queue: JobQueueConfig = JobQueueConfig()
    transcription: TranscriptionConfig = TranscriptionConfig()
    gemini: GeminiConfig
    quiz: QuizConfig = QuizConfig()
    hooks: HooksConfig = HooksConfig()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        media_store=os.getenv("MEDIA_STORE", "url"),
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            bucket_name=os.getenv("MINIO_BUCKET", "lectures"),
        ),
        postgres=PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", ""),
        ),
        rabbitmq=RabbitMQConfig(
            enabled=_env_bool("RABBITMQ_ENABLED"),
            host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
            user=os.getenv("RABBITMQ_USER", ""),
            password=os.getenv("RABBITMQ_PASSWORD", ""),
        ),
        job_queue=JobQueueConfig(
            max_attempts=int(os.getenv("TRANSCRIPT_MAX_ATTEMPTS", "3")),
            base_backoff_seconds=float(os.getenv("TRANSCRIPT_BACKOFF_SECONDS", "5")),
            inter_job_delay_seconds=float(
                os.getenv("TRANSCRIPT_JOB_DELAY_SECONDS", "2")
            ),
        ),
        transcription=TranscriptionConfig(
            provider=os.getenv("TRANSCRIPT_PROVIDER", "openai"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            deepgram_api_key=os.getenv("DEEPGRAM_API_KEY", ""),
            assemblyai_api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            language=os.getenv("TRANSCRIPT_LANGUAGE", "en"),
            poll_interval_seconds=float(
                os.getenv("TRANSCRIPT_POLL_INTERVAL_SECONDS", "5")
            ),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite"),
        ),
        hooks=HooksConfig(
            upload_quiz_delay_seconds=float(
                os.getenv("UPLOAD_QUIZ_DELAY_SECONDS", "30")
            ),
            transcript_settle_delay_seconds=float(
                os.getenv("TRANSCRIPT_SETTLE_DELAY_SECONDS", "2")
            ),
        ),
    )
