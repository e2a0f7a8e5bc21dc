"""Abstract interface for language-model operations."""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """Abstract base class for text-generation backends."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Generates text for a prompt.

        Args:
            prompt: The full prompt text.

        Returns:
            The raw model response text.

        Raises:
            LLMServiceError: If the model call fails.
        """
