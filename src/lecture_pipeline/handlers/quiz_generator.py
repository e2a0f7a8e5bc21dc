"""Two-tier quiz generation with transcript-grounded and topic-grounded prompts."""

import asyncio

from lecture_pipeline.config import QuizConfig
from lecture_pipeline.domain import QuizQuestion, QuizSource, VideoContext, parse_quiz_response
from lecture_pipeline.domain.quiz_prompts import build_topic_prompt, build_transcript_prompt
from lecture_pipeline.exceptions import GenerationError, ParseError, ProviderError
from lecture_pipeline.infrastructure.interfaces import LLMService
from lecture_pipeline.logging import setup_logging
from lecture_pipeline.repositories import VideoRepository

logger = setup_logging(__name__)


class QuizGenerator:
    """
    Synthesizes and stores a video's quiz.

    The transcript-grounded tier runs first when a COMPLETED, non-empty
    transcript exists and is accepted only with at least
    `config.transcript_min_questions` valid questions. Otherwise the
    topic-grounded tier runs and is accepted with any non-empty result. The
    accepted set fully replaces the video's stored questions.
    """

    def __init__(self, llm: LLMService, repository: VideoRepository, config: QuizConfig):
        self._llm = llm
        self._repository = repository
        self._config = config

    async def generate(self, video_id: str) -> list[QuizQuestion]:
        """
        Generates and persists the quiz for a video.

        Returns:
            The stored questions, positioned 1..N.

        Raises:
            VideoNotFoundError: If the video does not exist.
            GenerationError: If neither tier produced a usable quiz.
            PersistenceError: If the accepted quiz cannot be saved.
        """
        video = await asyncio.to_thread(self._repository.get_video_context, video_id)

        if video.has_completed_transcript:
            questions = await self._transcript_tier(video)
            if questions is not None:
                return await self._store(video_id, questions, "transcript")
        else:
            logger.info(
                "No completed transcript, using topic-based generation",
                extra={"video_id": video_id},
            )

        try:
            questions = await self._topic_tier(video)
        except (ParseError, ProviderError) as e:
            logger.exception("Quiz generation failed", extra={"video_id": video_id})
            raise GenerationError(video_id, cause=e) from e

        return await self._store(video_id, questions, "topic")

    async def _transcript_tier(self, video: VideoContext) -> list[QuizQuestion] | None:
        prompt = build_transcript_prompt(video, video.transcript.content, self._config)
        try:
            questions = await self._ask(prompt)
        except (ParseError, ProviderError) as e:
            logger.warning(
                "Transcript-based generation failed, falling back to topic-based",
                extra={"video_id": video.video_id, "error": str(e)},
            )
            return None

        if len(questions) < self._config.transcript_min_questions:
            logger.warning(
                "Too few transcript-based questions, falling back to topic-based",
                extra={
                    "video_id": video.video_id,
                    "valid": len(questions),
                    "required": self._config.transcript_min_questions,
                },
            )
            return None
        return questions

    async def _topic_tier(self, video: VideoContext) -> list[QuizQuestion]:
        return await self._ask(build_topic_prompt(video, self._config))

    async def _ask(self, prompt: str) -> list[QuizQuestion]:
        response = await self._llm.complete(prompt)
        return parse_quiz_response(response, self._config.default_points)

    async def _store(
        self, video_id: str, questions: list[QuizQuestion], source: QuizSource
    ) -> list[QuizQuestion]:
        await asyncio.to_thread(
            self._repository.replace_questions, video_id, questions, source
        )
        logger.info(
            "Quiz generated",
            extra={"video_id": video_id, "questions": len(questions), "source": source},
        )
        return questions
