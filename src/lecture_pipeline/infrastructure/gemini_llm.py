"""Gemini LLM service implementation."""

from google import genai

from lecture_pipeline.exceptions import LLMServiceError
from lecture_pipeline.logging import setup_logging

from .interfaces import LLMService

logger = setup_logging(__name__)


class GeminiLLMService(LLMService):
    """LLM service implementation using Google Gemini."""

    def __init__(
        self,
        client: genai.Client,
        model_name: str,
        temperature: float = 0.7,
        top_k: int = 40,
        top_p: float = 0.95,
    ):
        self._client = client
        self._model_name = model_name
        self._generation_config = {
            "temperature": temperature,
            "top_k": top_k,
            "top_p": top_p,
        }

    async def complete(self, prompt: str) -> str:
        """
        Generates a completion for the prompt with Gemini.

        Args:
            prompt: The full prompt text.

        Returns:
            The response text.

        Raises:
            LLMServiceError: If the Gemini API call fails or returns nothing.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=prompt,
                config=self._generation_config,
            )
        except Exception as e:
            logger.exception("Gemini API call failed")
            raise LLMServiceError(f"Gemini generation failed: {e}", cause=e) from e

        if not response.text:
            raise LLMServiceError("Gemini returned empty response")

        logger.info(
            "LLM completion received",
            extra={"model": self._model_name, "chars": len(response.text)},
        )
        return response.text
