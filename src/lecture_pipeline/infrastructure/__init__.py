"""Infrastructure layer exports."""

from lecture_pipeline.infrastructure.assemblyai_transcriber import AssemblyAITranscriber
from lecture_pipeline.infrastructure.deepgram_transcriber import DeepgramTranscriber
from lecture_pipeline.infrastructure.gemini_llm import GeminiLLMService
from lecture_pipeline.infrastructure.minio_media_store import MinioMediaStore
from lecture_pipeline.infrastructure.openai_transcriber import OpenAIWhisperTranscriber
from lecture_pipeline.infrastructure.rabbitmq_broker import RabbitMQBroker
from lecture_pipeline.infrastructure.url_media_store import UrlRenditionMediaStore

__all__ = [
    "AssemblyAITranscriber",
    "DeepgramTranscriber",
    "GeminiLLMService",
    "MinioMediaStore",
    "OpenAIWhisperTranscriber",
    "RabbitMQBroker",
    "UrlRenditionMediaStore",
]
