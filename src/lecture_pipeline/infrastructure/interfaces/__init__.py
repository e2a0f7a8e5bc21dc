"""Infrastructure interface exports."""

from lecture_pipeline.infrastructure.interfaces.llm_service import LLMService
from lecture_pipeline.infrastructure.interfaces.media_store import MediaStore
from lecture_pipeline.infrastructure.interfaces.message_broker import MessageBroker
from lecture_pipeline.infrastructure.interfaces.transcription_provider import (
    TranscriptionProvider,
)

__all__ = [
    "LLMService",
    "MediaStore",
    "MessageBroker",
    "TranscriptionProvider",
]
