"""Custom exceptions for the lecture pipeline."""


class ProviderError(Exception):
    """Raised when a speech-to-text or language-model call fails."""

    def __init__(self, provider: str, message: str, cause: Exception | None = None):
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider}: {message}")


class LLMServiceError(ProviderError):
    """Raised when a language-model call fails."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__("llm", message, cause)


class UnsupportedProviderError(Exception):
    """Raised when the configured transcription provider is not available."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Transcription provider '{provider}' is not supported")


class MediaStoreError(Exception):
    """Raised when an audio locator cannot be resolved for a media reference."""

    def __init__(self, media_ref: str, cause: Exception | None = None):
        self.media_ref = media_ref
        self.cause = cause
        super().__init__(f"Failed to resolve audio for media '{media_ref}'")


class ParseError(Exception):
    """Raised when model output holds no usable quiz questions."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class QuestionValidationError(Exception):
    """Raised when a single parsed question fails validation."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid question: {reason}")


class GenerationError(Exception):
    """Raised when every quiz generation strategy failed for a video."""

    def __init__(self, video_id: str, cause: Exception | None = None):
        self.video_id = video_id
        self.cause = cause
        super().__init__(f"Failed to generate quiz for video '{video_id}'")


class VideoNotFoundError(Exception):
    """Raised when a video does not exist."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video '{video_id}' not found")


class PersistenceError(Exception):
    """Raised when a database operation fails."""

    def __init__(self, video_id: str, operation: str, cause: Exception | None = None):
        self.video_id = video_id
        self.operation = operation
        self.cause = cause
        super().__init__(f"Database {operation} failed for video '{video_id}'")
